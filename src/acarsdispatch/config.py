"""Summary: Application configuration for the ACARS dispatch client.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for the Hoppie client and storage.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    db_path: str
    hoppie_url: str
    dispatch_callsign: str
    logon_code: str | None
    poll_interval_seconds: float
    request_timeout_seconds: float
    retry_attempts: int
    retry_delay_seconds: float
    dedup_window_seconds: float
    api_key: str

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            db_path=os.getenv("ACARS_DB_PATH", defaults["db_path"]),
            hoppie_url=os.getenv("HOPPIE_API_URL", defaults["hoppie_url"]),
            dispatch_callsign=os.getenv(
                "DISPATCH_CALLSIGN", defaults["dispatch_callsign"]
            ).upper(),
            logon_code=os.getenv("HOPPIE_LOGON_CODE") or defaults["logon_code"] or None,
            poll_interval_seconds=float(
                os.getenv("ACARS_POLL_INTERVAL", defaults["poll_interval_seconds"])
            ),
            request_timeout_seconds=float(
                os.getenv("API_TIMEOUT", defaults["request_timeout_seconds"])
            ),
            retry_attempts=int(os.getenv("API_RETRY_ATTEMPTS", defaults["retry_attempts"])),
            retry_delay_seconds=float(
                os.getenv("API_RETRY_DELAY", defaults["retry_delay_seconds"])
            ),
            dedup_window_seconds=float(
                os.getenv("ACARS_DEDUP_WINDOW", defaults["dedup_window_seconds"])
            ),
            api_key=os.getenv("ACARS_API_KEY", defaults["api_key"]),
        )

    def public_view(self) -> dict[str, object]:
        """Summary: Expose configuration that is safe to show to clients.

        Importance: Lets dashboards read endpoints and cadence without secrets.
        Alternatives: Duplicate configuration in the client bundle.
        """

        return {
            "hoppie_url": self.hoppie_url,
            "dispatch_callsign": self.dispatch_callsign,
            "poll_interval_seconds": self.poll_interval_seconds,
            "request_timeout_seconds": self.request_timeout_seconds,
            "logon_configured": bool(self.logon_code),
        }


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps the logon code out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())
