from guardpost.schemas.auth import Token, LoginRequest, RefreshRequest, ProfileOut
from guardpost.schemas.announcement import AnnouncementCreate, AnnouncementOut
from guardpost.schemas.breach import BreachCreate, BreachOut, BreachBoardRow
from guardpost.schemas.guard import GuardCreate, GuardUpdate, GuardOut, GuardStatsOut, AuditCreate, AuditOut
from guardpost.schemas.violation import ViolationCreate, ViolationDetail, ViolationListItem, ViolationListResponse

__all__ = [
    "Token", "LoginRequest", "RefreshRequest", "ProfileOut",
    "AnnouncementCreate", "AnnouncementOut",
    "BreachCreate", "BreachOut", "BreachBoardRow",
    "GuardCreate", "GuardUpdate", "GuardOut", "GuardStatsOut", "AuditCreate", "AuditOut",
    "ViolationCreate", "ViolationDetail", "ViolationListItem", "ViolationListResponse",
]
