import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from guardpost.api.deps import DB, CurrentProfile
from guardpost.core.security import hash_password, verify_password, create_access_token, create_refresh_token, decode_token
from guardpost.models.profile import Profile
from guardpost.schemas.auth import ChangePasswordRequest, LoginRequest, ProfileOut, Token, RefreshRequest


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
async def login(payload: LoginRequest, db: DB):
    result = await db.execute(select(Profile).where(Profile.email == payload.email))
    profile = result.scalar_one_or_none()

    if not profile or not verify_password(payload.password, profile.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not profile.is_active:
        raise HTTPException(status_code=400, detail="Account is deactivated")

    return Token(
        access_token=create_access_token(profile.id, profile.role),
        refresh_token=create_refresh_token(profile.id),
    )


@router.post("/refresh", response_model=Token)
async def refresh_token(payload: RefreshRequest, db: DB):
    try:
        token_data = decode_token(payload.refresh_token)
        if token_data.get("type") != "refresh":
            raise ValueError("Not a refresh token")
        profile_id = uuid.UUID(token_data["sub"])
    except (ValueError, KeyError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()

    if not profile or not profile.is_active:
        raise HTTPException(status_code=401, detail="Profile not found or inactive")

    return Token(
        access_token=create_access_token(profile.id, profile.role),
        refresh_token=create_refresh_token(profile.id),
    )


@router.get("/me", response_model=ProfileOut)
async def get_me(current_profile: CurrentProfile):
    return current_profile


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(payload: ChangePasswordRequest, current_profile: CurrentProfile, db: DB):
    """Allows any signed-in profile to change its own password."""
    if not verify_password(payload.current_password, current_profile.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    current_profile.hashed_password = hash_password(payload.new_password)
    await db.commit()
