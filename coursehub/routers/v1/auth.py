from typing import Annotated

from fastapi import APIRouter, Depends, status

from coursehub.core.deps import get_user_repository
from coursehub.core.errors import AuthenticationError
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.context import UserContext
from coursehub.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserPublic
from coursehub.services.auth_service import AuthService, to_public

router = APIRouter()

UserRepoDep = Annotated[UserRepo, Depends(get_user_repository)]
UserDep = Annotated[UserContext, Depends(AuthService.get_current_user)]


@router.post("/auth/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(data: RegisterRequest, repo: UserRepoDep):
    return await AuthService.register(data, repo)


@router.post("/auth/login", response_model=TokenResponse)
async def login_endpoint(data: LoginRequest, repo: UserRepoDep):
    return await AuthService.login(data, repo)


@router.get("/auth/me", response_model=UserPublic)
async def me_endpoint(user: UserDep, repo: UserRepoDep):
    found = await repo.find_one(user.user_id)
    if found is None:
        raise AuthenticationError("User no longer exists")
    return to_public(found)
