from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping

from .time_scale import VIEW_MODES, ViewMode


class ConfigError(ValueError):
    """Raised when chart options are unknown or carry unusable values."""


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


@dataclass
class ChartOptions:
    """Recognized chart options with their defaults."""

    header_height: int = 50
    column_width: int = 30
    step: int = 24
    view_modes: list[ViewMode] = field(default_factory=lambda: list(VIEW_MODES))
    bar_height: int = 20
    bar_corner_radius: int = 3
    arrow_curve: int = 5
    padding: int = 18
    view_mode: ViewMode = ViewMode.DAY
    date_format: str = "YYYY-MM-DD"
    popup_trigger: str = "click"
    custom_popup_html: Callable[..., str] | str | None = None
    language: str = "en"
    sortable: bool = False
    on_date_change: Callable[..., Any] | None = None
    on_progress_change: Callable[..., Any] | None = None
    on_view_change: Callable[..., Any] | None = None
    on_click: Callable[..., Any] | None = None

    @property
    def row_height(self) -> int:
        return self.bar_height + self.padding


def coerce_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigError(f"option '{key}': expected boolean, got {value!r}")


def _coerce_view_mode(value: Any, key: str) -> ViewMode:
    try:
        return ViewMode.coerce(value)
    except ValueError as exc:
        raise ConfigError(f"option '{key}': {exc}") from exc


def build_options(overrides: Mapping[str, Any] | None = None) -> ChartOptions:
    """Merge `overrides` onto the defaults, validating names and value types."""

    options = ChartOptions()
    if not overrides:
        return options

    known = {f.name for f in fields(ChartOptions)}
    extras = sorted(set(overrides) - known)
    if extras:
        raise ConfigError(f"unexpected options {extras}")

    for key, value in overrides.items():
        if key == "view_mode":
            value = _coerce_view_mode(value, key)
        elif key == "view_modes":
            if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
                raise ConfigError(f"option '{key}': expected list of view modes")
            value = [_coerce_view_mode(v, key) for v in value]
            if not value:
                raise ConfigError(f"option '{key}': expected at least one view mode")
        elif key == "sortable":
            value = coerce_bool(value, key)
        elif key in {"header_height", "column_width", "step", "bar_height", "bar_corner_radius", "arrow_curve", "padding"}:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"option '{key}': expected number, got {value!r}")
        elif key in {"language", "popup_trigger", "date_format"}:
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"option '{key}': expected non-empty string")
        setattr(options, key, value)

    return options
