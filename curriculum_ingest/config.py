"""
Settings for talking to the curriculum REST API.

Only the submission side reads these; parsing and mapping need no config.
Environment variables:

    CURRICULUM_API_URL      base URL, default http://localhost:8081/api
    CURRICULUM_API_TOKEN    bearer token (optional)
    CURRICULUM_API_TIMEOUT  request timeout in seconds, default 30
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_API_URL = "http://localhost:8081/api"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_URL
    api_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        timeout_raw = (env.get("CURRICULUM_API_TIMEOUT") or "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(f"CURRICULUM_API_TIMEOUT must be a number, got {timeout_raw!r}") from None

        return cls(
            api_base_url=(env.get("CURRICULUM_API_URL") or DEFAULT_API_URL).strip().rstrip("/"),
            api_token=(env.get("CURRICULUM_API_TOKEN") or "").strip() or None,
            timeout=timeout,
        )

    def with_overrides(
        self,
        api_base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> "Settings":
        """
        Return a copy with the given (non-None) values replaced, e.g. from CLI flags.
        """
        return Settings(
            api_base_url=(api_base_url or self.api_base_url).rstrip("/"),
            api_token=api_token if api_token is not None else self.api_token,
            timeout=timeout if timeout is not None else self.timeout,
        )
