"""
Engine settings.

Rendering knobs that the surrounding application may want to override
(date format, placeholder for missing calculator values, ...). The
evaluation semantics themselves are not configurable.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

import yaml

from .errors import FormflowError


@dataclass(frozen=True)
class EngineSettings:
    """
    Properties:
        default_rating_max: max used when piping a rating without a configured max
        date_format: strftime pattern used when piping date answers
        empty_value_placeholder: shown for a calculator value that could not be computed
        list_separator: joins multi-value answers when piping
        default_decimal_places: used by format_calculated_value when not given
    """

    default_rating_max: int = 5
    date_format: str = "%m/%d/%Y"
    empty_value_placeholder: str = "—"
    list_separator: str = ", "
    default_decimal_places: int = 2

    @classmethod
    def from_mapping(cls, d: Mapping[str, Any] | None) -> "EngineSettings":
        """Build settings from a plain dict, ignoring unknown keys."""
        if not d:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


DEFAULT_SETTINGS = EngineSettings()


def load_settings(path: str) -> EngineSettings:
    """Read settings from a YAML file. A missing or empty document gives defaults."""
    with open(path) as fh:
        data = yaml.safe_load(fh)
    if data is not None and not isinstance(data, dict):
        raise FormflowError(f"Settings file {path} must contain a mapping")
    return EngineSettings.from_mapping(data)


__all__ = ["EngineSettings", "DEFAULT_SETTINGS", "load_settings"]
