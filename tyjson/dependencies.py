from fastapi import Depends

from tyjson.db.base import get_db
from tyjson.repos.content_repo import ContentRepo
from tyjson.repos.options_repo import OptionsRepo
from tyjson.repos.theme_settings_repo import ThemeSettingsRepo
from tyjson.repos.users_repo import UsersRepo
from tyjson.security import get_settings
from tyjson.services.cache import SettingsCache
from tyjson.services.summary_service import SummaryService
from tyjson.settings import settings

# Shared by every request in the process
settings_cache = SettingsCache(ttl=settings.CACHE_TTL, max_entries=settings.CACHE_MAX_SIZE)


def get_settings_cache() -> SettingsCache:
    return settings_cache


def get_content_repo(db=Depends(get_db)):
    return ContentRepo(db)


def get_options_repo(db=Depends(get_db), cache=Depends(get_settings_cache)):
    return OptionsRepo(db, cache=cache)


def get_theme_settings_repo(
    db=Depends(get_db),
    current_settings=Depends(get_settings),
    cache=Depends(get_settings_cache),
):
    return ThemeSettingsRepo(db, current_settings.THEME_NAME, cache=cache)


def get_users_repo(db=Depends(get_db)):
    return UsersRepo(db)


def get_ai_client():
    """None builds an OpenAI client from the configured options on first use."""
    return None


def get_summary_service(
    repo=Depends(get_content_repo),
    options_repo=Depends(get_options_repo),
    current_settings=Depends(get_settings),
    ai_client=Depends(get_ai_client),
):
    return SummaryService(repo, options_repo, current_settings, ai_client=ai_client)
