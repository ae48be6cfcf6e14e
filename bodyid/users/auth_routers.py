# bodyid/users/auth_routers.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bodyid.database.connection import get_db
from bodyid.users.auth_services import login_user, registering_user
from bodyid.users.user_models.schemas import AuthResponse, UserLogin, UserPublic, UserRegister

router = APIRouter()


# ============================================================
# ✅ REGISTER
# ============================================================
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserRegister, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    access_token, user = await registering_user(user_data, db)
    return AuthResponse(access_token=access_token, user=UserPublic.model_validate(user))


# ============================================================
# ✅ AUTHENTICATE USER (LOGIN)
# ============================================================
@router.post("/login", response_model=AuthResponse)
async def login(user_data: UserLogin, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    access_token, user = await login_user(user_data, db)
    return AuthResponse(access_token=access_token, user=UserPublic.model_validate(user))
