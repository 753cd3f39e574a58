"""Application configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Immutable metric settings resolved from environment."""

    app_env: str = "dev"
    log_level: str = "INFO"

    # Trailing windows (days) the metric services look back over
    recovery_window_days: int = 3
    load_window_days: int = 28
    insights_window_days: int = 30

    max_insights: int = 5

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
    },
    "staging": {
        "log_level": "INFO",
    },
    "production": {
        "log_level": "WARNING",
        "max_insights": 3,
    },
}


def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        recovery_window_days=int(os.getenv("RECOVERY_WINDOW_DAYS", "3")),
        load_window_days=int(os.getenv("LOAD_WINDOW_DAYS", "28")),
        insights_window_days=int(os.getenv("INSIGHTS_WINDOW_DAYS", "30")),
        max_insights=int(os.getenv("MAX_INSIGHTS", str(profile.get("max_insights", 5)))),
    )
