"""Account endpoints.

    POST /signup: create an account
    POST /login: check credentials and receive a bearer token
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..core.auth import get_token_service, issue_token
from ..core.config import settings
from ..jose import TokenService
from ..repositories.kv_store import KeyValueStore
from ..services import account_service
from .deps import get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64, description="Account name")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")

    model_config = {
        "json_schema_extra": {
            "examples": [{"username": "ada", "password": "analytical-engine"}]
        }
    }


class LoginRequest(BaseModel):
    username: str
    password: str


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    message: str
    token: str


@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=201,
    summary="Register a new user",
)
def signup(body: SignupRequest, store: KeyValueStore = Depends(get_store)):
    account_service.register_user(store, body.username, body.password)
    return MessageResponse(message="User registered successfully")


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Authenticate and receive a bearer token",
)
def login(
    body: LoginRequest,
    store: KeyValueStore = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
):
    user = account_service.authenticate(store, body.username, body.password)
    token = issue_token(tokens, user["username"], settings.jwt_ttl_seconds)
    logger.info("Login successful", extra={"username": user["username"]})
    return LoginResponse(message="Login successful", token=token)
