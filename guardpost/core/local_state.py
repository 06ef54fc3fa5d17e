"""
Instance-local state: UI preferences per profile and the void-override set.

The override set stands in for `violations.voided` on databases where that
column has not been migrated yet. It lives on this instance only and is not
shared with other deployments.

Lifecycle: the JSON file is loaded lazily on first access (a missing or
unreadable file yields defaults) and written back with save() after every
change, via a temp file and an atomic replace.
"""
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from guardpost.core.config import settings

logger = logging.getLogger(__name__)

# Default "wide layout" per page when a profile has not chosen yet
PAGE_WIDE_DEFAULTS: dict[str, bool] = {
    "violations": False,
    "pending_docs": True,
    "log_violation": True,
    "violation_detail": True,
    "users": True,
}


class PagePreferences(BaseModel):
    wide: bool | None = None
    filters: dict[str, Any] = Field(default_factory=dict)


class ProfilePreferences(BaseModel):
    theme: Literal["light", "dark"] | None = None
    pages: dict[str, PagePreferences] = Field(default_factory=dict)


class LocalState(BaseModel):
    version: int = 1
    preferences: dict[str, ProfilePreferences] = Field(default_factory=dict)
    void_overrides: set[uuid.UUID] = Field(default_factory=set)


class LocalStateStore:

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._state: LocalState | None = None

    @property
    def state(self) -> LocalState:
        if self._state is None:
            self._state = self.load()
        return self._state

    def load(self) -> LocalState:
        if not self.path.exists():
            return LocalState()
        try:
            return LocalState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Local state at %s unreadable, starting empty: %s", self.path, e)
            return LocalState()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(self.state.model_dump_json(indent=2))
            os.replace(tmp, self.path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    # ── Preferences ──────────────────────────────────────────────────────────

    def preferences_for(self, profile_id: uuid.UUID) -> ProfilePreferences:
        return self.state.preferences.get(str(profile_id), ProfilePreferences())

    def page_preferences(self, profile_id: uuid.UUID, page: str) -> PagePreferences:
        prefs = self.preferences_for(profile_id).pages.get(page, PagePreferences())
        if prefs.wide is None:
            prefs = prefs.model_copy(update={"wide": PAGE_WIDE_DEFAULTS.get(page, False)})
        return prefs

    def set_theme(self, profile_id: uuid.UUID, theme: Literal["light", "dark"]) -> None:
        prefs = self.state.preferences.setdefault(str(profile_id), ProfilePreferences())
        prefs.theme = theme

    def set_page(
        self,
        profile_id: uuid.UUID,
        page: str,
        wide: bool | None = None,
        filters: dict[str, Any] | None = None,
    ) -> PagePreferences:
        prefs = self.state.preferences.setdefault(str(profile_id), ProfilePreferences())
        page_prefs = prefs.pages.setdefault(page, PagePreferences())
        if wide is not None:
            page_prefs.wide = wide
        if filters is not None:
            page_prefs.filters = filters
        return page_prefs

    def snapshot_preferences(self, profile_id: uuid.UUID) -> ProfilePreferences | None:
        prefs = self.state.preferences.get(str(profile_id))
        return prefs.model_copy(deep=True) if prefs is not None else None

    def restore_preferences(self, profile_id: uuid.UUID, prefs: ProfilePreferences | None) -> None:
        if prefs is None:
            self.state.preferences.pop(str(profile_id), None)
        else:
            self.state.preferences[str(profile_id)] = prefs

    # ── Void overrides ───────────────────────────────────────────────────────

    @property
    def void_overrides(self) -> frozenset[uuid.UUID]:
        return frozenset(self.state.void_overrides)

    def set_void(self, violation_id: uuid.UUID, void: bool) -> None:
        if void:
            self.state.void_overrides.add(violation_id)
        else:
            self.state.void_overrides.discard(violation_id)

    def clear_void_overrides(self) -> None:
        self.state.void_overrides.clear()


_store: LocalStateStore | None = None


def get_local_state_store() -> LocalStateStore:
    global _store
    if _store is None:
        _store = LocalStateStore(settings.LOCAL_STATE_PATH)
    return _store
