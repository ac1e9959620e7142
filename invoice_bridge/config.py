# invoice_bridge/config.py
"""
Runtime settings for the invoice endpoint.

Env vars:
- GOOGLE_APPS_SCRIPT_URL (required) — deployed Apps Script web app URL
- AIRTABLE_API_KEY (required) — personal access token used as a bearer token
- AIRTABLE_BASE_ID (required)
- AIRTABLE_TABLE_NAME (default: Invoices)
- AIRTABLE_API_URL (default: https://api.airtable.com/v0)
- UPSTREAM_TIMEOUT_SECONDS (default: 60)
- ENVIRONMENT / NODE_ENV (default: production) — "development" exposes stack traces
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from invoice_bridge.exceptions import ConfigurationError

DEFAULT_TABLE_NAME = "Invoices"
DEFAULT_AIRTABLE_API_URL = "https://api.airtable.com/v0"
DEFAULT_TIMEOUT_SECONDS = 60.0


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def environment_name(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return (_clean(env.get("ENVIRONMENT")) or _clean(env.get("NODE_ENV")) or "production").lower()


def is_development(environ: Optional[Mapping[str, str]] = None) -> bool:
    return environment_name(environ) == "development"


@dataclass(frozen=True)
class Settings:
    apps_script_url: Optional[str]
    airtable_api_key: Optional[str]
    airtable_base_id: Optional[str]
    airtable_table_name: str = DEFAULT_TABLE_NAME
    airtable_api_url: str = DEFAULT_AIRTABLE_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    environment: str = "production"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout_raw = _clean(env.get("UPSTREAM_TIMEOUT_SECONDS"))
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
        except ValueError as e:
            raise ConfigurationError(
                f"UPSTREAM_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}"
            ) from e
        return cls(
            apps_script_url=_clean(env.get("GOOGLE_APPS_SCRIPT_URL")),
            airtable_api_key=_clean(env.get("AIRTABLE_API_KEY")),
            airtable_base_id=_clean(env.get("AIRTABLE_BASE_ID")),
            airtable_table_name=_clean(env.get("AIRTABLE_TABLE_NAME")) or DEFAULT_TABLE_NAME,
            airtable_api_url=(_clean(env.get("AIRTABLE_API_URL")) or DEFAULT_AIRTABLE_API_URL).rstrip("/"),
            timeout_seconds=timeout,
            environment=environment_name(env),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def require(self) -> "Settings":
        """Raise ConfigurationError naming the first missing required value."""
        required = (
            ("GOOGLE_APPS_SCRIPT_URL", self.apps_script_url),
            ("AIRTABLE_API_KEY", self.airtable_api_key),
            ("AIRTABLE_BASE_ID", self.airtable_base_id),
        )
        for name, value in required:
            if not value:
                raise ConfigurationError(f"{name} environment variable is not set")
        return self
