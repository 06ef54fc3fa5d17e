"""
Schema capability negotiation.

Databases that have not applied the `voided` migration still serve the app;
the probe detects that once and the result is cached for the process.
"""
import logging
import re
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# PostgreSQL: column violations.voided does not exist
# SQLite:     no such column: voided
_MISSING_VOIDED = re.compile(
    r"column .*voided.* does not exist|no such column: .*voided", re.IGNORECASE
)


@dataclass(frozen=True)
class SchemaCapabilities:
    voided_column: bool


_cached: SchemaCapabilities | None = None


def is_missing_voided_error(exc: BaseException) -> bool:
    message = str(getattr(exc, "orig", None) or exc)
    return bool(_MISSING_VOIDED.search(message))


async def probe_capabilities(db: AsyncSession) -> SchemaCapabilities:
    """
    Select `voided` once; a missing-column error means the migration has not landed.

    Runs on its own connection so a failed select never rolls back (and
    expires) what the caller's session already loaded.
    """
    async with db.bind.connect() as conn:
        try:
            await conn.execute(text("SELECT voided FROM violations LIMIT 1"))
        except SQLAlchemyError as e:
            if not is_missing_voided_error(e):
                raise
            await conn.rollback()
            logger.warning("violations.voided is missing; void state falls back to local overrides")
            return SchemaCapabilities(voided_column=False)
    logger.info("violations.voided present")
    return SchemaCapabilities(voided_column=True)


def get_cached_capabilities() -> SchemaCapabilities | None:
    return _cached


def set_cached_capabilities(caps: SchemaCapabilities) -> None:
    global _cached
    _cached = caps


def reset_capabilities() -> None:
    global _cached
    _cached = None
