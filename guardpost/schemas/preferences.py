from pydantic import BaseModel
from typing import Any, Literal


class ThemeUpdate(BaseModel):
    theme: Literal["light", "dark"]


class PageUpdate(BaseModel):
    wide: bool | None = None
    filters: dict[str, Any] | None = None


class PagePreferencesOut(BaseModel):
    wide: bool
    filters: dict[str, Any]


class PreferencesOut(BaseModel):
    theme: Literal["light", "dark"] | None
    pages: dict[str, PagePreferencesOut]
