from fastapi import APIRouter
from sqlalchemy import select

from guardpost.api.deps import DB, CurrentProfile
from guardpost.models.audit import AuditType
from guardpost.models.violation import Post, ViolationType
from guardpost.schemas.catalog import AuditTypeOut, PostOut, ViolationTypeOut

router = APIRouter(tags=["catalog"])


@router.get("/violation-types", response_model=list[ViolationTypeOut])
async def list_violation_types(current_profile: CurrentProfile, db: DB):
    result = await db.execute(select(ViolationType).order_by(ViolationType.label))
    return result.scalars().all()


@router.get("/posts", response_model=list[PostOut])
async def list_posts(current_profile: CurrentProfile, db: DB):
    result = await db.execute(
        select(Post).where(Post.active == True).order_by(Post.name)  # noqa: E712
    )
    return result.scalars().all()


@router.get("/audit-types", response_model=list[AuditTypeOut])
async def list_audit_types(current_profile: CurrentProfile, db: DB):
    result = await db.execute(select(AuditType).order_by(AuditType.label))
    return result.scalars().all()
