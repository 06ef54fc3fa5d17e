from fastapi import APIRouter, status
from sqlalchemy import select

from guardpost.api.deps import DB, CurrentProfile
from guardpost.core.config import settings
from guardpost.models.announcement import Announcement
from guardpost.schemas.announcement import AnnouncementCreate, AnnouncementOut

router = APIRouter(prefix="/announcements", tags=["announcements"])


@router.get("", response_model=list[AnnouncementOut])
async def list_announcements(current_profile: CurrentProfile, db: DB):
    """Newest first."""
    result = await db.execute(
        select(Announcement)
        .order_by(Announcement.created_at.desc())
        .limit(settings.ANNOUNCEMENTS_LIMIT)
    )
    return result.scalars().all()


@router.post("", response_model=AnnouncementOut, status_code=status.HTTP_201_CREATED)
async def create_announcement(payload: AnnouncementCreate, current_profile: CurrentProfile, db: DB):
    announcement = Announcement(title=payload.title, body=payload.body, author=payload.author)
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)
    return announcement
