"""HTTP client for changing device settings, built on httpx."""
from __future__ import annotations

import logging

import httpx

from clientpack.errors import NetworkError

logger = logging.getLogger(__name__)

SETTINGS_PATH = "/set"

SettingValue = bool | int | float


def encode_setting(name: str, value: SettingValue) -> tuple[str, str]:
    """Return the ``(key, value)`` query pair for one setting change.

    The key is the setting name with spaces removed; booleans become
    ``True``/``False`` and numbers their decimal string.
    """
    key = name.replace(" ", "")
    if isinstance(value, bool):
        return key, "True" if value else "False"
    if isinstance(value, float) and value.is_integer():
        return key, str(int(value))
    return key, str(value)


def parse_setting_value(raw: str) -> SettingValue:
    """Interpret a command-line value as a boolean or a number."""
    lowered = raw.strip().lower()
    if lowered in ("true", "on", "yes"):
        return True
    if lowered in ("false", "off", "no"):
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Setting values must be booleans or numbers, got {raw!r}") from None


class SettingsClient:
    """Send setting changes to a device as ``GET /set?<Key>=<value>``.

    Success is judged by HTTP status alone; transport failures and non-2xx
    responses raise :class:`NetworkError`.
    """

    def __init__(self, base_url: str, timeout: float = 5.0) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout))

    def change(self, name: str, value: SettingValue) -> int:
        key, encoded = encode_setting(name, value)
        return self.send({key: encoded})

    def send(self, params: dict[str, str]) -> int:
        try:
            resp = self._client.get(SETTINGS_PATH, params=params)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Settings request failed: {exc}", cause=exc) from exc

        if not resp.is_success:
            raise NetworkError(
                f"Settings request rejected with HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        logger.info("Changed settings %s", ", ".join(f"{k}={v}" for k, v in params.items()))
        return resp.status_code

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> SettingsClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
