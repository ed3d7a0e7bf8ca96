"""HTTP API exposing the messaging core."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, load_settings
from .credentials import CredentialStore
from .database import Database
from .directory import UserDirectory
from .errors import MessagelyError, UnauthenticatedError
from .ledger import MessageLedger
from .messenger import Messenger
from .security import RequestAuthenticator, TokenIssuer

logger = logging.getLogger("messagely.service")


class _Projection(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserSummaryView(_Projection):
    username: str
    first_name: str
    last_name: str
    phone: str


class UserView(UserSummaryView):
    join_at: datetime
    last_login_at: Optional[datetime]


class MessageView(_Projection):
    id: int
    body: str
    sent_at: datetime
    read_at: Optional[datetime]
    from_user: UserSummaryView
    to_user: UserSummaryView


class SentMessageView(_Projection):
    id: int
    body: str
    sent_at: datetime
    read_at: Optional[datetime]
    to_user: UserSummaryView


class ReceivedMessageView(_Projection):
    id: int
    body: str
    sent_at: datetime
    read_at: Optional[datetime]
    from_user: UserSummaryView


class ReadReceiptView(_Projection):
    id: int
    read_at: Optional[datetime]


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=32)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str


class SendMessageRequest(BaseModel):
    to_username: str
    body: str


class TokenResponse(BaseModel):
    token: str


class UserListResponse(BaseModel):
    users: List[UserSummaryView]


class UserResponse(BaseModel):
    user: UserView


class SentMessagesResponse(BaseModel):
    messages: List[SentMessageView]


class ReceivedMessagesResponse(BaseModel):
    messages: List[ReceivedMessageView]


class MessageResponse(BaseModel):
    message: MessageView


class ReadReceiptResponse(BaseModel):
    message: ReadReceiptView


def register_error_handlers(app: FastAPI) -> None:
    """Translate core failures and validation errors into JSON responses."""

    @app.exception_handler(MessagelyError)
    async def messagely_error_handler(request: Request, exc: MessagelyError) -> JSONResponse:
        logger.info("%s on %s: %s", exc.code, request.url.path, exc.message)
        headers = None
        if isinstance(exc, UnauthenticatedError):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(status_code=exc.http_status, content=exc.to_response(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Validation error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "BAD_INPUT",
                    "message": "Invalid request data",
                    "details": [
                        {
                            "field": ".".join(str(part) for part in error["loc"]),
                            "message": error["msg"],
                        }
                        for error in exc.errors()
                    ],
                }
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}},
        )


def register_api_routes(
    app: FastAPI,
    messenger: Messenger,
    tokens: TokenIssuer,
    *,
    current_user: Callable[..., str],
) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/auth/register", status_code=status.HTTP_201_CREATED, response_model=TokenResponse)
    def register(request: RegisterRequest) -> TokenResponse:
        user = messenger.register(
            request.username,
            request.password,
            request.first_name,
            request.last_name,
            request.phone,
        )
        return TokenResponse(token=tokens.issue(user.username))

    @app.post("/auth/login", response_model=TokenResponse)
    def login(request: LoginRequest) -> TokenResponse:
        user = messenger.login(request.username, request.password)
        return TokenResponse(token=tokens.issue(user.username))

    @app.get("/users", response_model=UserListResponse)
    def list_users(identity: str = Depends(current_user)) -> UserListResponse:
        users = messenger.list_users(identity)
        return UserListResponse(users=[UserSummaryView.model_validate(user) for user in users])

    @app.get("/users/{username}", response_model=UserResponse)
    def get_user(username: str, identity: str = Depends(current_user)) -> UserResponse:
        user = messenger.get_user(identity, username)
        return UserResponse(user=UserView.model_validate(user))

    @app.get("/users/{username}/to", response_model=ReceivedMessagesResponse)
    def messages_to(username: str, identity: str = Depends(current_user)) -> ReceivedMessagesResponse:
        messages = messenger.messages_to(identity, username)
        return ReceivedMessagesResponse(
            messages=[ReceivedMessageView.model_validate(message) for message in messages]
        )

    @app.get("/users/{username}/from", response_model=SentMessagesResponse)
    def messages_from(username: str, identity: str = Depends(current_user)) -> SentMessagesResponse:
        messages = messenger.messages_from(identity, username)
        return SentMessagesResponse(
            messages=[SentMessageView.model_validate(message) for message in messages]
        )

    @app.post(
        "/users/{username}/messages",
        status_code=status.HTTP_201_CREATED,
        response_model=MessageResponse,
    )
    def send_message(
        username: str,
        request: SendMessageRequest,
        identity: str = Depends(current_user),
    ) -> MessageResponse:
        message = messenger.send(identity, username, request.to_username, request.body)
        return MessageResponse(message=MessageView.model_validate(message))

    @app.get("/users/{username}/messages/{message_id}", response_model=MessageResponse)
    def get_message(
        username: str,
        message_id: int,
        identity: str = Depends(current_user),
    ) -> MessageResponse:
        message = messenger.read_message(identity, username, message_id)
        return MessageResponse(message=MessageView.model_validate(message))

    @app.post("/users/{username}/messages/{message_id}/read", response_model=ReadReceiptResponse)
    def mark_read(
        username: str,
        message_id: int,
        identity: str = Depends(current_user),
    ) -> ReadReceiptResponse:
        message = messenger.mark_read(identity, username, message_id)
        return ReadReceiptResponse(message=ReadReceiptView.model_validate(message))


def build_messenger(database: Database, settings: Settings) -> Messenger:
    credentials = CredentialStore(rounds=settings.bcrypt_rounds)
    return Messenger(UserDirectory(database, credentials), MessageLedger(database))


def create_app(
    *,
    settings: Settings | None = None,
    database: Database | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the messaging API."""

    app_settings = settings or load_settings()
    db = database or Database(app_settings.database_path)
    db.initialize()

    messenger = build_messenger(db, app_settings)
    tokens = TokenIssuer(app_settings.token_secret, ttl_seconds=app_settings.token_ttl_seconds)

    app = FastAPI(
        title="messagely",
        version="0.1.0",
        description="Send and read text messages between registered users.",
    )
    app.state.database = db
    app.state.messenger = messenger
    app.state.tokens = tokens

    register_error_handlers(app)
    current_user = RequestAuthenticator(messenger.directory, tokens)
    register_api_routes(app, messenger, tokens, current_user=current_user)

    return app


__all__ = ["build_messenger", "create_app"]
