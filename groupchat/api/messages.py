"""Group messaging endpoints.

    POST   /send-message: post to a group (bearer token required)
    GET    /messages: read a group's messages (bearer token required)
    DELETE /delete: purge all accounts or all messages
"""

import logging
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from ..core.auth import require_user
from ..core.config import settings
from ..exceptions import ForbiddenError, ValidationError
from ..repositories.kv_store import KeyValueStore
from ..services import account_service, message_service
from .auth_routes import MessageResponse
from .deps import get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Messages"])


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_name: str = Field(..., alias="groupName", min_length=1, max_length=128)
    message: str = Field(..., min_length=1, max_length=4000)


class StoredMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(..., alias="from")
    message: str
    timestamp: str


class PurgeType(str, Enum):
    ACCOUNTS = "accounts"
    MESSAGES = "msgs"


@router.post(
    "/send-message",
    response_model=MessageResponse,
    summary="Post a message to a group",
)
def send_message(
    body: SendMessageRequest,
    username: str = Depends(require_user),
    store: KeyValueStore = Depends(get_store),
):
    message_service.send_message(store, body.group_name, username, body.message)
    return MessageResponse(message="Message sent successfully")


@router.get(
    "/messages",
    response_model=List[StoredMessage],
    response_model_by_alias=True,
    dependencies=[Depends(require_user)],
    summary="List a group's messages, oldest first",
)
def get_messages(
    group_name: str = Query(..., alias="groupName", min_length=1),
    store: KeyValueStore = Depends(get_store),
):
    return message_service.list_messages(store, group_name)


@router.delete(
    "/delete",
    response_model=MessageResponse,
    summary="Delete all accounts or all messages",
)
def purge(
    type: Optional[str] = Query(None, description="'accounts' or 'msgs'"),
    store: KeyValueStore = Depends(get_store),
):
    if not settings.purge_enabled:
        raise ForbiddenError("Bulk deletion is disabled")

    try:
        kind = PurgeType(type)
    except ValueError:
        raise ValidationError("Invalid type parameter", field="type")

    if kind is PurgeType.ACCOUNTS:
        account_service.purge_users(store)
        return MessageResponse(message="All accounts deleted successfully")

    message_service.purge_messages(store)
    return MessageResponse(message="All messages deleted successfully")
