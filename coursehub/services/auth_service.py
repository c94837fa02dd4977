from datetime import datetime, timezone
from typing import Annotated, Optional

from bson import ObjectId
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from coursehub.core.deps import get_user_repository
from coursehub.core.errors import AuthenticationError, ConflictError
from coursehub.core.security import create_access_token, decode_access_token, hash_password, verify_password
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.context import UserContext
from coursehub.schemas.user import LoginRequest, RegisterRequest, TokenResponse, User, UserPublic

bearer_scheme = HTTPBearer(auto_error=False)


def to_public(user: User) -> UserPublic:
    return UserPublic(id=user.id, name=user.name, email=user.email, role=user.role)


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(access_token=create_access_token(user.id, user.role.value), user=to_public(user))


class AuthService:

    @staticmethod
    async def register(data: RegisterRequest, repo: UserRepo) -> TokenResponse:
        email = data.email.strip().lower()
        if await repo.find_by_email(email):
            raise ConflictError("Email already registered")

        user = User(
            id=str(ObjectId()),
            name=data.name,
            email=email,
            passwordHash=hash_password(data.password),
            role=data.role,
            createdAt=datetime.now(timezone.utc),
        )
        await repo.create(user)
        return _token_response(user)

    @staticmethod
    async def login(data: LoginRequest, repo: UserRepo) -> TokenResponse:
        user = await repo.find_by_email(data.email)
        if user is None or not verify_password(data.password, user.passwordHash):
            raise AuthenticationError("Invalid email or password")
        return _token_response(user)

    @staticmethod
    async def authenticate_token(token: Optional[str], repo: UserRepo) -> UserContext:
        if not token:
            raise AuthenticationError("Missing bearer token")
        payload = decode_access_token(token)

        user = await repo.find_one(payload["sub"])
        if user is None:
            raise AuthenticationError("User no longer exists")
        # role comes from the store so a demotion takes effect before the token expires
        return UserContext(user_id=user.id, role=user.role, name=user.name)

    @staticmethod
    async def get_current_user(
        repo: Annotated[UserRepo, Depends(get_user_repository)],
        credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    ) -> UserContext:
        token = credentials.credentials if credentials else None
        return await AuthService.authenticate_token(token, repo)
