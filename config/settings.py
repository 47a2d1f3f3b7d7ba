"""
config/settings.py — Canonical configuration contract for pve_health.

Uses pydantic-settings to load, validate, and type-check the environment
variables the reporting host hands to the plugin. The evaluator never reads
the environment itself; scripts/scan.py builds everything from a Settings.

Two usage modes:
  Production / scripts:
      cfg = load_settings()              # reads from .env + os.environ
      cfg = load_settings("env/lab.env") # override env file path

  Tests (isolated — no env file, no os.environ bleed):
      cfg = Settings(GOHL_CONFIG_URL="https://pve:8006", ...)
      # All values come exclusively from kwargs → clean, reproducible.
"""
from __future__ import annotations

import os
import re
from typing import Optional

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

API_SUFFIX = "/api2/json"


class Settings(BaseSettings):
    # Settings() reads purely from kwargs. load_settings() is the explicit
    # production entry point that merges the env file and os.environ.
    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)

    # -------------------------------------------------------------------------
    # Connection (names are fixed by the reporting host)
    # -------------------------------------------------------------------------
    GOHL_CONFIG_URL: Optional[str] = None
    GOHL_CONFIG_TOKEN_ID: Optional[str] = None
    GOHL_CONFIG_SECRET: Optional[str] = None

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------
    # Proxmox ships a self-signed certificate by default.
    PVE_VERIFY_TLS: bool = False
    PVE_TIMEOUT_SECONDS: int = 10
    # Bound on the whole scan; 0 disables it.
    PVE_SCAN_DEADLINE_SECONDS: int = 0

    # -------------------------------------------------------------------------
    # Convenience properties
    # -------------------------------------------------------------------------

    @property
    def is_complete(self) -> bool:
        """True when URL, token id and secret are all present."""
        return bool(self.GOHL_CONFIG_URL and self.GOHL_CONFIG_TOKEN_ID and self.GOHL_CONFIG_SECRET)

    @property
    def api_url(self) -> str:
        """Base URL with the /api2/json suffix the Proxmox REST API lives under."""
        url = self.GOHL_CONFIG_URL or ""
        if url.endswith(API_SUFFIX):
            return url
        return url.rstrip("/") + API_SUFFIX

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("GOHL_CONFIG_URL", "GOHL_CONFIG_TOKEN_ID", "GOHL_CONFIG_SECRET", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        """Strip stray whitespace and treat blank values as unset."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("PVE_TIMEOUT_SECONDS")
    @classmethod
    def positive_timeout(cls, v: int) -> int:
        if v < 1:
            raise ValueError("PVE_TIMEOUT_SECONDS must be >= 1")
        return v

    @field_validator("PVE_SCAN_DEADLINE_SECONDS")
    @classmethod
    def non_negative_deadline(cls, v: int) -> int:
        if v < 0:
            raise ValueError("PVE_SCAN_DEADLINE_SECONDS must be >= 0")
        return v


def load_settings(env_file: str = ".env") -> Settings:
    """Load and validate settings from an env file + os.environ.

    Manually parses the env file and merges with os.environ (os.environ wins),
    then passes only known Settings fields as explicit kwargs. A missing env
    file is not an error: the reporting host normally passes everything
    through the environment.

    Raises:
        ValidationError: if a value cannot be coerced (e.g. a non-integer timeout).
    """
    file_vals: dict[str, str] = {}
    try:
        with open(env_file, encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                k, _, v = line.partition("=")
                k = k.strip()
                # Strip inline comments: "false   # true | false" → "false"
                v = re.sub(r"\s+#.*$", "", v.strip())
                if k:
                    file_vals[k] = v
    except FileNotFoundError:
        pass
    merged = {**file_vals, **os.environ}  # os.environ wins
    known = {k: v for k, v in merged.items() if k in Settings.model_fields}
    return Settings(**known)
