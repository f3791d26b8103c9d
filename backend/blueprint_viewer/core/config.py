from functools import lru_cache
import json
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list_value(value: str) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except ValueError:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        validate_by_name=True,
        populate_by_name=True,
    )

    # Placeholder viewbox used when the geometry cannot be rendered.
    default_width: int = Field(
        default=600,
        gt=0,
        validation_alias=AliasChoices("BLUEPRINT_DEFAULT_WIDTH", "DEFAULT_WIDTH"),
    )
    default_height: int = Field(
        default=400,
        gt=0,
        validation_alias=AliasChoices("BLUEPRINT_DEFAULT_HEIGHT", "DEFAULT_HEIGHT"),
    )

    svg_max_width: float = Field(
        default=10000.0,
        gt=0,
        validation_alias=AliasChoices("SVG_MAX_WIDTH"),
    )
    svg_max_height: float = Field(
        default=10000.0,
        gt=0,
        validation_alias=AliasChoices("SVG_MAX_HEIGHT"),
    )
    max_markup_chars: int = Field(
        default=50000,
        gt=0,
        validation_alias=AliasChoices("SVG_MAX_MARKUP_CHARS", "MAX_MARKUP_CHARS"),
    )
    svg_markup_fields_raw: str = Field(
        default="svg,content,data",
        validation_alias=AliasChoices("SVG_MARKUP_FIELDS"),
    )

    calibration_length_inches: float = Field(
        default=12.0,
        gt=0,
        validation_alias=AliasChoices("CALIBRATION_LENGTH_INCHES"),
    )

    security_debug_store_raw: bool = Field(
        default=False,
        validation_alias=AliasChoices("SECURITY_DEBUG_STORE_RAW"),
    )
    security_alert_window_seconds: int = Field(
        default=3600,
        gt=0,
        validation_alias=AliasChoices("SECURITY_ALERT_WINDOW_SECONDS"),
    )
    security_alert_thresholds_raw: str = Field(
        default="",
        validation_alias=AliasChoices("SECURITY_ALERT_THRESHOLDS"),
    )

    @field_validator("svg_markup_fields_raw", "security_alert_thresholds_raw", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        if value is None:
            return ""
        return value

    @property
    def svg_markup_fields(self) -> list[str]:
        return _parse_list_value(self.svg_markup_fields_raw)

    @property
    def security_alert_thresholds(self) -> dict[str, int]:
        """Per-event overrides, e.g. ``SVG_DANGEROUS_CONTENT_DETECTED=3``."""
        thresholds: dict[str, int] = {}
        for item in _parse_list_value(self.security_alert_thresholds_raw):
            name, sep, limit = item.partition("=")
            if not sep:
                continue
            try:
                thresholds[name.strip().upper()] = int(limit)
            except ValueError:
                continue
        return thresholds

@lru_cache

def get_settings() -> Settings:
    return Settings()
