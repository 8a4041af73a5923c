"""
Theme option schema: tabs of typed fields loaded from the theme's setup file,
plus the rules for turning stored strings back into typed form values.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

TRUTHY = ("true", "1")


class FieldType(str, Enum):
    TEXT = "Text"
    TEXTAREA = "Textarea"
    COLOR_PICKER = "ColorPicker"
    RADIO = "Radio"
    SELECT = "Select"
    CHECKBOX = "Checkbox"
    TAGS = "Tags"
    ADD_LIST = "AddList"
    DIALOG_SELECT = "DialogSelect"
    SWITCH = "Switch"
    NUMBER = "Number"
    SLIDER = "Slider"
    HTML = "Html"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "FieldType":
        try:
            return cls(raw)
        except ValueError:
            return cls.TEXT


def _split_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value]
    if value is None or value == "":
        return []
    return [item.strip() for item in str(value).split(",")]


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in TRUTHY


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# --- comparison keys: equal keys mean "stored value is just the default" ---


def _list_key(value: Any) -> List[str]:
    return sorted(_split_list(value))


def _number_key(value: Any) -> float:
    number = _as_float(value)
    return 0.0 if number is None else number


def _text_key(value: Any) -> Any:
    return value


# --- normalizers: stored string -> typed form value ---


def _normalize_list(value: Any, default: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    if isinstance(value, str) and value:
        return value.split(",")
    return []


def _normalize_switch(value: Any, default: Any) -> bool:
    return _as_bool(value)


def _normalize_number(value: Any, default: Any) -> float:
    number = _as_float(value)
    if number is not None:
        return number
    fallback = _as_float(default)
    return 0.0 if fallback is None else fallback


def _normalize_text(value: Any, default: Any) -> Any:
    return value


COMPARE_KEYS: Dict[FieldType, Callable[[Any], Any]] = {
    FieldType.CHECKBOX: _list_key,
    FieldType.TAGS: _list_key,
    FieldType.ADD_LIST: _list_key,
    FieldType.DIALOG_SELECT: _list_key,
    FieldType.SWITCH: _as_bool,
    FieldType.NUMBER: _number_key,
    FieldType.SLIDER: _number_key,
}

NORMALIZERS: Dict[FieldType, Callable[[Any, Any], Any]] = {
    FieldType.CHECKBOX: _normalize_list,
    FieldType.TAGS: _normalize_list,
    FieldType.ADD_LIST: _normalize_list,
    FieldType.SWITCH: _normalize_switch,
    FieldType.NUMBER: _normalize_number,
    FieldType.SLIDER: _normalize_number,
}


def to_stored(value: Any) -> str:
    """Flatten a form value into the string form kept in the settings table."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(to_stored(item) for item in value)
    if value is None:
        return ""
    return str(value)


def effective_value(field: Dict[str, Any], stored: Any) -> Any:
    """Stored override when it differs from the schema default, else the default."""
    default = field.get("value", "")
    if default is None:
        default = ""
    if stored is None:
        return default

    key = COMPARE_KEYS.get(FieldType.parse(field.get("type")), _text_key)
    if key(stored) != key(default):
        return stored
    return default


def normalize_value(field: Dict[str, Any], value: Any) -> Any:
    normalizer = NORMALIZERS.get(FieldType.parse(field.get("type")), _normalize_text)
    return normalizer(value, field.get("value"))


def load_schema(path: str) -> Dict[str, Dict[str, Any]]:
    """Read ``{tab_id: {title, fields: [...]}}`` from a YAML setup file."""
    setup_file = Path(path)
    if not setup_file.exists():
        raise FileNotFoundError(f"Setup file not found: {path}")
    with setup_file.open(encoding="utf-8") as fh:
        try:
            tabs = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid setup file {path}: {e}") from e
    if not isinstance(tabs, dict):
        raise ValueError(f"Setup file must map tab ids to tabs: {path}")
    return tabs


def iter_fields(tabs: Dict[str, Dict[str, Any]]):
    for tab in tabs.values():
        for field in tab.get("fields") or []:
            if field.get("name"):
                yield field


def fields_by_name(tabs: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {field["name"]: field for field in iter_fields(tabs)}


def form_data(tabs: Dict[str, Dict[str, Any]], settings_repo) -> Dict[str, Any]:
    data = {}
    for field in iter_fields(tabs):
        if FieldType.parse(field.get("type")) == FieldType.HTML:
            continue
        stored = settings_repo.get(field["name"])
        data[field["name"]] = normalize_value(field, effective_value(field, stored))
    return data


def install_defaults(tabs: Dict[str, Dict[str, Any]], settings_repo) -> int:
    """Write schema defaults for fields that have never been stored."""
    installed = 0
    for field in iter_fields(tabs):
        if FieldType.parse(field.get("type")) == FieldType.HTML:
            continue
        if settings_repo.get(field["name"]) is not None:
            continue
        settings_repo.set(field["name"], to_stored(field.get("value", "")))
        installed += 1
    if installed:
        logger.info(f"Installed {installed} default theme settings")
    return installed
