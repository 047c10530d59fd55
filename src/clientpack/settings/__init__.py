"""Client for the device's settings endpoint."""
from __future__ import annotations

from clientpack.settings.client import (
    SETTINGS_PATH,
    SettingsClient,
    encode_setting,
    parse_setting_value,
)

__all__ = ["SETTINGS_PATH", "SettingsClient", "encode_setting", "parse_setting_value"]
