"""
Guard archive / delete.

Both operations prefer the database procedures `archive_guard` and
`delete_guard_if_unused`. Where a database does not define them the same rule
is applied directly through the ORM.
"""
import logging
import re
import uuid

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guardpost.models.audit import Audit
from guardpost.models.guard import Guard
from guardpost.models.violation import Violation
from guardpost.services.tentative import MutationFailed

logger = logging.getLogger(__name__)

_MISSING_PROCEDURE = re.compile(r"function .* does not exist|no such function", re.IGNORECASE)


class GuardNotFound(Exception):
    pass


class GuardInUse(Exception):
    pass


def is_missing_procedure_error(exc: BaseException) -> bool:
    message = str(getattr(exc, "orig", None) or exc)
    return bool(_MISSING_PROCEDURE.search(message))


async def _call_procedure(db: AsyncSession, name: str, guard_id: uuid.UUID) -> bool:
    """Run a guard procedure. False when the database does not define it."""
    try:
        await db.execute(text(f"SELECT {name}(:guard_id)"), {"guard_id": str(guard_id)})
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        if is_missing_procedure_error(e):
            logger.info("Procedure %s unavailable, applying directly", name)
            return False
        raise MutationFailed(str(getattr(e, "orig", None) or e)) from e
    return True


async def _get_guard(db: AsyncSession, guard_id: uuid.UUID) -> Guard:
    result = await db.execute(select(Guard).where(Guard.id == guard_id))
    guard = result.scalar_one_or_none()
    if guard is None:
        raise GuardNotFound(str(guard_id))
    return guard


async def archive_guard(db: AsyncSession, guard_id: uuid.UUID) -> None:
    await _get_guard(db, guard_id)
    if await _call_procedure(db, "archive_guard", guard_id):
        return
    try:
        await db.execute(update(Guard).where(Guard.id == guard_id).values(status="inactive"))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise MutationFailed(str(getattr(e, "orig", None) or e)) from e


async def is_guard_in_use(db: AsyncSession, guard_id: uuid.UUID) -> bool:
    violations = await db.scalar(
        select(func.count()).select_from(Violation).where(Violation.guard_id == guard_id)
    )
    audits = await db.scalar(
        select(func.count()).select_from(Audit).where(Audit.guard_id == guard_id)
    )
    return bool(violations or audits)


async def delete_guard_if_unused(db: AsyncSession, guard_id: uuid.UUID) -> None:
    await _get_guard(db, guard_id)
    if await _call_procedure(db, "delete_guard_if_unused", guard_id):
        return
    if await is_guard_in_use(db, guard_id):
        raise GuardInUse("Guard has violations or audits and cannot be deleted")
    try:
        await db.execute(delete(Guard).where(Guard.id == guard_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise MutationFailed(str(getattr(e, "orig", None) or e)) from e
