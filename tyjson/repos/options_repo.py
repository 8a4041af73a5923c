from typing import Dict, Optional

from sqlalchemy.orm import Session

from tyjson.models.option import Option
from tyjson.services.cache import SettingsCache


class OptionsRepo:
    """Site options, read through the shared settings cache."""

    def __init__(self, db: Session, cache: Optional[SettingsCache] = None):
        self.db = db
        self.cache = cache

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        if self.cache is None:
            value = self._load(name)
        else:
            value = self.cache.get_or_set(f"option:{name}", lambda: self._load(name))
        return default if value is None else value

    def all(self) -> Dict[str, Optional[str]]:
        rows = self.db.query(Option).filter(Option.user == 0).all()
        return {row.name: row.value for row in rows}

    def _load(self, name: str) -> Optional[str]:
        row = self.db.get(Option, (name, 0))
        return row.value if row else None
