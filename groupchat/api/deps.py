"""Shared FastAPI dependencies for the routers."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..repositories.kv_store import KeyValueStore


def get_store(db: Session = Depends(get_db)) -> KeyValueStore:
    return KeyValueStore(db)
