from guardpost.models.profile import Profile
from guardpost.models.guard import Guard
from guardpost.models.violation import ViolationType, Post, Violation, ViolationFile
from guardpost.models.audit import AuditType, Audit
from guardpost.models.breach import ContractorBreach
from guardpost.models.announcement import Announcement

__all__ = [
    "Profile",
    "Guard",
    "ViolationType",
    "Post",
    "Violation",
    "ViolationFile",
    "AuditType",
    "Audit",
    "ContractorBreach",
    "Announcement",
]
