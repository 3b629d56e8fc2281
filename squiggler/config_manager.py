"""Settings persistence, validation and share strings.

This module handles loading and saving of Settings to/from JSON files, the
validation run before a pipeline starts, and the compact query-string form
used to share a configuration.
"""

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from squiggler.errors import SettingsValidationError
from squiggler.image_processing.colors import parse_color
from squiggler.models import (
    CONFIG_FILE,
    MAX_GRID,
    MIN_GRID,
    CurveControls,
    ProcessingMode,
    Settings,
)

logger = logging.getLogger(__name__)

MIN_COLORS = 2
MAX_COLORS = 16

# Abbreviated query keys
PARAM_MAP = {
    "mode": "processing_mode",
    "rows": "rows_count",
    "cols": "columns_count",
    "bright": "brightness_threshold",
    "minD": "min_density",
    "maxD": "max_density",
    "cont": "continuous_paths",
    "curved": "curved_paths",
    "dist": "path_distance_threshold",
    "colors": "colors_amt",
    "monoColor": "monochrome_color",
    "curve": "curve_controls",
}
REVERSE_PARAM_MAP = {full: short for short, full in PARAM_MAP.items()}

CURVE_PARAM_MAP = {
    "jcf": "junction_continuity_factor",
    "ths": "tile_height_scale",
    "sw": "stroke_width",
    "hra": "handle_rotation_angle",
    "lkxs": "lower_knot_x_shift",
    "uksf": "upper_knot_shift_factor",
    "df": "disorganize_factor",
    "rws": "row_wave_shift",
    "cws": "column_wave_shift",
    "wsf": "wave_shift_frequency",
}
REVERSE_CURVE_MAP = {full: short for short, full in CURVE_PARAM_MAP.items()}

# AIDEV-NOTE: Bounds applied to values arriving in share strings
QUERY_BOUNDS = {
    "rows_count": (MIN_GRID, MAX_GRID),
    "columns_count": (MIN_GRID, MAX_GRID),
    "brightness_threshold": (0, 255),
    "min_density": (1, 20),
    "max_density": (1, 20),
    "path_distance_threshold": (1, 100),
    "colors_amt": (MIN_COLORS, MAX_COLORS),
}

INT_FIELDS = {
    "rows_count",
    "columns_count",
    "brightness_threshold",
    "min_density",
    "max_density",
    "colors_amt",
}


def validate_settings(settings: Settings) -> None:
    """Reject settings the pipeline cannot run with.

    AIDEV-NOTE: Never clamps. Untrusted input is clamped at its own
    boundary (see deserialize_settings_from_query) before reaching here.

    Raises:
        SettingsValidationError: Describing the first problem found
    """
    if not isinstance(settings.processing_mode, ProcessingMode):
        raise SettingsValidationError(
            f"Unknown processing mode: {settings.processing_mode!r}"
        )

    for name in ("columns_count", "rows_count"):
        value = getattr(settings, name)
        if not MIN_GRID <= value <= MAX_GRID:
            raise SettingsValidationError(
                f"{name} must be between {MIN_GRID} and {MAX_GRID}, got {value}"
            )

    if settings.min_density < 0:
        raise SettingsValidationError("min_density must not be negative")
    if settings.min_density > settings.max_density:
        raise SettingsValidationError(
            f"min_density ({settings.min_density}) is greater than "
            f"max_density ({settings.max_density})"
        )

    if settings.processing_mode is ProcessingMode.POSTERIZE and not (
        MIN_COLORS <= settings.colors_amt <= MAX_COLORS
    ):
        raise SettingsValidationError(
            f"colors_amt must be between {MIN_COLORS} and {MAX_COLORS} "
            f"for posterize, got {settings.colors_amt}"
        )

    try:
        parse_color(settings.monochrome_color)
    except ValueError as e:
        raise SettingsValidationError(
            f"Unrecognised monochrome color: {settings.monochrome_color!r}"
        ) from e


def settings_to_dict(settings: Settings) -> "dict[str, Any]":
    data = asdict(settings)
    data["processing_mode"] = settings.processing_mode.value
    return data


def settings_from_dict(data: "dict[str, Any]") -> Settings:
    """Build Settings from a plain dict, falling back to defaults.

    Unknown keys are ignored and curve controls are merged with their own
    defaults, so files written by older versions still load.
    """
    settings = Settings()
    known = {f.name for f in fields(Settings)}

    for key, value in data.items():
        if key not in known:
            continue
        if key == "processing_mode":
            value = ProcessingMode(value)
        elif key == "curve_controls":
            value = curve_controls_from_dict(value or {})
        setattr(settings, key, value)

    return settings


def curve_controls_from_dict(data: "dict[str, Any]") -> CurveControls:
    controls = CurveControls()
    known = {f.name for f in fields(CurveControls)}
    for key, value in data.items():
        if key in known:
            setattr(controls, key, float(value))
    return controls


class ConfigManager:
    """Handles loading and saving of settings."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.squiggler_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> Settings:
        """Load settings from file, returning defaults if not found.

        Returns:
            Settings with loaded or default values
        """
        if not self.config_path.exists():
            return Settings()

        try:
            with open(self.config_path, "r") as f:
                settings = settings_from_dict(json.load(f))
            logger.info("Loaded configuration from %s", self.config_path)
            return settings
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            return Settings()

    def save(self, settings: Settings) -> Tuple[bool, Optional[str]]:
        """Save settings to file.

        Args:
            settings: Settings to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w") as f:
                json.dump(settings_to_dict(settings), f, indent=2)
            return True, None
        except (OSError, TypeError) as e:
            return False, str(e)


# --- Share strings ---


def _clamp(key: str, value: float) -> float:
    bounds = QUERY_BOUNDS.get(key)
    if bounds:
        low, high = bounds
        value = max(low, min(high, value))
    return value


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def serialize_curve_controls(controls: CurveControls) -> str:
    """Compact JSON of the curve controls that differ from the defaults."""
    defaults = CurveControls()
    abbreviated = {
        REVERSE_CURVE_MAP[name]: value
        for name, value in asdict(controls).items()
        if value != getattr(defaults, name)
    }
    if not abbreviated:
        return ""
    return json.dumps(abbreviated, separators=(",", ":"))


def deserialize_curve_controls(encoded: str) -> CurveControls | None:
    try:
        abbreviated = json.loads(encoded)
    except ValueError:
        logger.warning("Ignoring malformed curve controls %r", encoded)
        return None
    if not isinstance(abbreviated, dict):
        return None

    controls = CurveControls()
    for short_key, value in abbreviated.items():
        full_key = CURVE_PARAM_MAP.get(short_key)
        if full_key and isinstance(value, (int, float)) and not isinstance(value, bool):
            setattr(controls, full_key, float(value))
    return controls


def serialize_settings_to_query(settings: Settings) -> str:
    """Encode settings as a URL query string.

    AIDEV-NOTE: visible_paths is session specific and never shared.
    """
    params = []
    for name, short_key in REVERSE_PARAM_MAP.items():
        value = getattr(settings, name)

        if name == "curve_controls":
            encoded = serialize_curve_controls(value)
            if encoded:
                params.append((short_key, encoded))
        elif name == "processing_mode":
            params.append((short_key, value.value))
        elif isinstance(value, bool):
            params.append((short_key, "1" if value else "0"))
        elif name == "monochrome_color":
            params.append((short_key, value.lstrip("#")))
        else:
            params.append((short_key, _format_number(value)))

    return urlencode(params)


def deserialize_settings_from_query(query: str) -> "dict[str, Any] | None":
    """Decode a query string into a partial settings dict.

    Unknown keys and unknown modes are ignored; numbers are clamped to
    QUERY_BOUNDS.

    Returns:
        Settings field values, or None if the query holds no known keys
    """
    partial: "dict[str, Any]" = {}
    has_valid_params = False

    for short_key, value in parse_qsl(query.lstrip("?")):
        full_key = PARAM_MAP.get(short_key)
        if not full_key:
            continue
        has_valid_params = True

        if full_key == "curve_controls":
            controls = deserialize_curve_controls(value)
            if controls is not None:
                partial[full_key] = controls
        elif full_key == "processing_mode":
            try:
                partial[full_key] = ProcessingMode(value)
            except ValueError:
                logger.warning("Ignoring unknown processing mode %r", value)
        elif full_key in ("continuous_paths", "curved_paths"):
            partial[full_key] = value in ("1", "true")
        elif full_key == "monochrome_color":
            partial[full_key] = value if value.startswith("#") else f"#{value}"
        else:
            try:
                number = float(value)
            except ValueError:
                continue
            number = _clamp(full_key, number)
            partial[full_key] = int(number) if full_key in INT_FIELDS else number

    return partial if has_valid_params else None


def apply_query(settings: Settings, query: str) -> Settings:
    """Settings with the values of a share string layered on top."""
    partial = deserialize_settings_from_query(query) or {}
    merged = settings_to_dict(settings)
    merged.update(partial)
    merged["curve_controls"] = asdict(partial.get("curve_controls", settings.curve_controls))
    return settings_from_dict(merged)
