"""
Apply / confirm / compensate for state-changing writes.

A change is applied in memory first, then confirmed (commit or local save).
If confirmation fails the captured prior values are put back and the raw
provider message is raised as MutationFailed. Nothing is retried.
"""
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from guardpost.core.local_state import LocalStateStore

logger = logging.getLogger(__name__)


class MutationFailed(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


async def run_tentative(
    apply: Callable[[], None],
    confirm: Callable[[], Awaitable[None]],
    compensate: Callable[[], Awaitable[None]],
    label: str,
) -> None:
    apply()
    try:
        await confirm()
    except (SQLAlchemyError, OSError) as e:
        message = str(getattr(e, "orig", None) or e)
        logger.error("%s failed, restoring prior state: %s", label, message)
        await compensate()
        raise MutationFailed(message) from e


async def update_row(db: AsyncSession, record: Any, changes: dict[str, Any]) -> None:
    """Set attributes on an ORM row and commit; on failure restore the old values."""
    prior = {key: getattr(record, key) for key in changes}
    state = inspect(record)
    loaded = [key for key in state.mapper.column_attrs.keys() if key not in state.unloaded]

    def apply() -> None:
        for key, value in changes.items():
            setattr(record, key, value)

    async def compensate() -> None:
        # rollback expires the whole row; reload it before putting the old values back
        await db.rollback()
        await db.refresh(record, attribute_names=loaded)
        for key, value in prior.items():
            set_committed_value(record, key, value)

    await run_tentative(
        apply, db.commit, compensate,
        label=f"update {type(record).__name__} {getattr(record, 'id', '')}",
    )


async def update_local_void(store: LocalStateStore, violation_id: uuid.UUID, void: bool) -> None:
    """Toggle a local void override and persist it; on failure restore the set."""
    was_void = violation_id in store.void_overrides

    async def confirm() -> None:
        store.save()

    async def compensate() -> None:
        store.set_void(violation_id, was_void)

    await run_tentative(
        lambda: store.set_void(violation_id, void), confirm, compensate,
        label=f"local void override {violation_id}",
    )


async def update_local_preferences(
    store: LocalStateStore, profile_id: uuid.UUID, apply: Callable[[], None]
) -> None:
    """Change one profile's preferences and persist them; on failure put the old ones back."""
    prior = store.snapshot_preferences(profile_id)

    async def confirm() -> None:
        store.save()

    async def compensate() -> None:
        store.restore_preferences(profile_id, prior)

    await run_tentative(apply, confirm, compensate, label=f"preferences for {profile_id}")
