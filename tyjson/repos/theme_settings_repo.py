import logging
import re
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from tyjson.errors import ValidationError
from tyjson.models.theme_setting import ThemeSetting
from tyjson.services.cache import SettingsCache

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{1,100}$")


class ThemeSettingsRepo:
    """
    Theme options stored as ``<theme>_<name>`` rows. Reads fall back to the
    bare name written by older theme versions.
    """

    def __init__(self, db: Session, theme_name: str, cache: Optional[SettingsCache] = None):
        self.db = db
        self.theme_name = theme_name
        self.cache = cache

    def full_name(self, name: str) -> str:
        if not NAME_PATTERN.match(name or ""):
            raise ValidationError(f"Invalid field name: {name}")
        if self.theme_name and NAME_PATTERN.match(self.theme_name):
            return f"{self.theme_name}_{name}"
        return name

    def get(self, name: str, default: Any = None) -> Any:
        full_name = self.full_name(name)
        cache_key = f"ttdf:{full_name}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        row = self.db.get(ThemeSetting, full_name) or self.db.get(ThemeSetting, name)
        value = row.value if row else None
        if value is not None and self.cache is not None:
            self.cache.set(cache_key, value)
        return default if value is None else value

    def set(self, name: str, value: Any) -> None:
        full_name = self.full_name(name)
        row = self.db.get(ThemeSetting, full_name)
        stored = "" if value is None else str(value)
        if row:
            row.value = stored
        else:
            self.db.add(ThemeSetting(name=full_name, value=stored))
        self.db.commit()
        if self.cache is not None:
            self.cache.delete(f"ttdf:{full_name}")
        logger.debug(f"Theme setting updated: {full_name}")

    def delete(self, name: str) -> None:
        full_name = self.full_name(name)
        for key in {full_name, name}:
            row = self.db.get(ThemeSetting, key)
            if row:
                self.db.delete(row)
        self.db.commit()
        if self.cache is not None:
            self.cache.delete(f"ttdf:{full_name}")

    def all(self, current_theme_only: bool = False) -> Dict[str, Optional[str]]:
        rows = self.db.query(ThemeSetting).all()
        if not current_theme_only or not self.theme_name:
            return {row.name: row.value for row in rows}

        prefix = f"{self.theme_name}_"
        return {
            row.name[len(prefix) :]: row.value
            for row in rows
            if row.name.startswith(prefix)
        }
