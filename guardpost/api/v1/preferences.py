from fastapi import APIRouter

from guardpost.api.deps import CurrentProfile, LocalState
from guardpost.core.local_state import PAGE_WIDE_DEFAULTS
from guardpost.schemas.preferences import PagePreferencesOut, PageUpdate, PreferencesOut, ThemeUpdate
from guardpost.services.tentative import update_local_preferences

router = APIRouter(prefix="/preferences", tags=["preferences"])


def _preferences(store, profile_id) -> PreferencesOut:
    prefs = store.preferences_for(profile_id)
    pages = sorted(set(PAGE_WIDE_DEFAULTS) | set(prefs.pages))
    return PreferencesOut(
        theme=prefs.theme,
        pages={
            page: PagePreferencesOut(**store.page_preferences(profile_id, page).model_dump())
            for page in pages
        },
    )


@router.get("", response_model=PreferencesOut)
async def get_preferences(current_profile: CurrentProfile, store: LocalState):
    return _preferences(store, current_profile.id)


@router.put("/theme", response_model=PreferencesOut)
async def set_theme(payload: ThemeUpdate, current_profile: CurrentProfile, store: LocalState):
    await update_local_preferences(
        store, current_profile.id, lambda: store.set_theme(current_profile.id, payload.theme)
    )
    return _preferences(store, current_profile.id)


@router.put("/pages/{page}", response_model=PagePreferencesOut)
async def set_page(page: str, payload: PageUpdate, current_profile: CurrentProfile, store: LocalState):
    """Wide layout toggle and saved filters for one page."""
    await update_local_preferences(
        store,
        current_profile.id,
        lambda: store.set_page(current_profile.id, page, wide=payload.wide, filters=payload.filters),
    )
    return PagePreferencesOut(**store.page_preferences(current_profile.id, page).model_dump())
