"""Attention settings: target project, holidays, thresholds and time zone."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .attention import Thresholds
from .config import ENV_TARGET_PROJECT, ENV_TIME_ZONE
from .holidays import build_holiday_set
from .types import IssueAttentionError

logger = logging.getLogger(__name__)

SETTINGS_DIR = Path.home() / ".issue_attention" / "settings"


class SettingsError(IssueAttentionError, ValueError):
    pass


@dataclass
class AttentionSettings:
    """Per-deployment settings loaded once and shared by every read."""

    name: str = "default"
    target_project: str | None = None
    holidays: list[str] = field(default_factory=list)
    thresholds: Thresholds = field(default_factory=Thresholds)
    time_zone: str | None = None

    def __post_init__(self):
        if self.time_zone:
            try:
                ZoneInfo(self.time_zone)
            except (ZoneInfoNotFoundError, ValueError) as error:
                raise SettingsError(f"Unknown time zone: {self.time_zone}") from error

    @cached_property
    def holiday_set(self) -> frozenset[str]:
        return build_holiday_set(self.holidays)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "target_project": self.target_project,
            "holidays": list(self.holidays),
            "thresholds": self.thresholds.to_dict(),
            "time_zone": self.time_zone,
        }

    def save(self, path: Path | None = None) -> Path:
        path = path or SETTINGS_DIR / f"{self.name}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        return path

    @classmethod
    def from_dict(cls, data: dict) -> "AttentionSettings":
        if not isinstance(data, dict):
            raise SettingsError("Settings must be a JSON object")
        holidays = data.get("holidays") or []
        if not isinstance(holidays, list):
            raise SettingsError("holidays must be a list of date strings")
        return cls(
            name=data.get("name") or "default",
            target_project=data.get("target_project") or data.get("targetProject"),
            holidays=holidays,
            thresholds=Thresholds.from_mapping(data.get("thresholds")),
            time_zone=data.get("time_zone") or data.get("timeZone"),
        )


def _apply_environment(settings: AttentionSettings) -> AttentionSettings:
    target = os.environ.get(ENV_TARGET_PROJECT)
    time_zone = os.environ.get(ENV_TIME_ZONE)
    if not target and not time_zone:
        return settings
    data = settings.to_dict()
    if target:
        data["target_project"] = target
    if time_zone:
        data["time_zone"] = time_zone
    return AttentionSettings.from_dict(data)


def load_settings(name_or_path: str | None = None) -> AttentionSettings:
    """Load settings by name (from SETTINGS_DIR) or JSON file path.

    No argument gives the defaults. Environment variables override the file.
    """
    if not name_or_path:
        return _apply_environment(AttentionSettings())

    path = Path(name_or_path)
    if not path.exists():
        path = SETTINGS_DIR / f"{name_or_path}.json"
    if not path.exists():
        raise SettingsError(f"Unknown settings: {name_or_path}")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as error:
        raise SettingsError(f"Invalid settings file {path}: {error}") from error

    settings = AttentionSettings.from_dict(data)
    logger.debug(
        "Loaded settings %s from %s (%d holidays)", settings.name, path, len(settings.holiday_set)
    )
    return _apply_environment(settings)


def list_settings() -> list[str]:
    if not SETTINGS_DIR.exists():
        return []
    return sorted(f.stem for f in SETTINGS_DIR.glob("*.json"))
