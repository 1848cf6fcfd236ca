from __future__ import annotations

"""Shared helpers for reading typed values out of config sections."""

from typing import Any, Mapping

_MISSING = object()


def get_section(raw: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    """Return a mapping section from root config.

    Args:
        raw: Root configuration mapping.
        key: Section name.
        required: Whether the section must exist.

    Returns:
        Section mapping, or empty mapping for optional missing sections.

    Raises:
        ValueError: If section is required but missing.
        TypeError: If section is not a mapping.
    """
    section = raw.get(key)
    if section is None:
        if required:
            raise ValueError(f"Missing required config: {key}")
        return {}
    if not isinstance(section, Mapping):
        raise TypeError(f"{key} must be an object")
    return section


def _lookup(section: Mapping[str, Any], prefix: str, field: str, default: Any) -> Any:
    if field in section:
        return section[field]
    if default is _MISSING:
        raise ValueError(f"Missing required config: {prefix}.{field}")
    return default


def read_str(section: Mapping[str, Any], prefix: str, field: str, default: Any = _MISSING) -> str:
    """Read a string field; without ``default`` the field is required."""
    value = _lookup(section, prefix, field, default)
    if not isinstance(value, str):
        raise TypeError(f"{prefix}.{field} must be a string")
    return value


def read_bool(section: Mapping[str, Any], prefix: str, field: str, default: Any = _MISSING) -> bool:
    """Read a boolean field."""
    value = _lookup(section, prefix, field, default)
    if not isinstance(value, bool):
        raise TypeError(f"{prefix}.{field} must be a boolean")
    return value


def read_int(section: Mapping[str, Any], prefix: str, field: str, default: Any = _MISSING) -> int:
    """Read an integer field (bool is rejected)."""
    value = _lookup(section, prefix, field, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{prefix}.{field} must be an integer")
    return value


def read_float(section: Mapping[str, Any], prefix: str, field: str, default: Any = _MISSING) -> float:
    """Read a numeric field as float."""
    value = _lookup(section, prefix, field, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{prefix}.{field} must be a number")
    return float(value)


def check_non_empty(value: str, config_key: str) -> None:
    if not value.strip():
        raise ValueError(f"{config_key} must not be empty")


def check_positive(value: float, config_key: str) -> None:
    if value <= 0:
        raise ValueError(f"{config_key} must be positive")
