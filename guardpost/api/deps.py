from typing import Annotated
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from guardpost.core.capabilities import SchemaCapabilities, get_cached_capabilities
from guardpost.core.database import get_db
from guardpost.core.local_state import LocalStateStore, get_local_state_store
from guardpost.core.security import decode_token
from guardpost.models.profile import Profile
from guardpost.services.evidence_storage import EvidenceStorage, get_evidence_storage
from guardpost.services.violation_service import negotiate_capabilities

security = HTTPBearer()


async def get_current_profile(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise credentials_exception
        profile_id = uuid.UUID(payload["sub"])
    except (ValueError, KeyError):
        raise credentials_exception

    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()

    if profile is None or not profile.is_active:
        raise credentials_exception

    return profile


async def get_current_manager(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
) -> Profile:
    if not current_profile.is_manager:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Managers only",
        )
    return current_profile


async def get_capabilities(
    db: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[LocalStateStore, Depends(get_local_state_store)],
) -> SchemaCapabilities:
    """Cached probe result; probes (and reconciles) on first use if start-up did not."""
    caps = get_cached_capabilities()
    if caps is None:
        caps = await negotiate_capabilities(db, store)
    return caps


CurrentProfile = Annotated[Profile, Depends(get_current_profile)]
ManagerProfile = Annotated[Profile, Depends(get_current_manager)]
Capabilities = Annotated[SchemaCapabilities, Depends(get_capabilities)]
LocalState = Annotated[LocalStateStore, Depends(get_local_state_store)]
Storage = Annotated[EvidenceStorage, Depends(get_evidence_storage)]
DB = Annotated[AsyncSession, Depends(get_db)]
