"""
Backend configuration.

A ``Judge0Config`` is built once by the caller and passed to the orchestrator.
"""

from __future__ import annotations

import os
import typing as t
from enum import Enum
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

from batchjudge.exceptions import ConfigurationError

DEFAULT_API_URL = "http://localhost:2358"
# 71 is Python 3.8.1 on Judge0 CE; self-hosted deployments may differ.
DEFAULT_LANGUAGE_ID = 71
GATEWAY_HOSTNAME_MARKER = "rapidapi.com"
DEFAULT_GATEWAY_HOST = "judge0-ce.p.rapidapi.com"

_ENV_FIELDS: dict[str, str] = {
    "api_url": "JUDGE0_API_URL",
    "api_key": "JUDGE0_API_KEY",
    "language_id": "JUDGE0_PYTHON_ID",
    "timeout": "JUDGE0_TIMEOUT",
    "initial_poll_interval": "JUDGE0_INITIAL_POLL_INTERVAL",
    "max_poll_interval": "JUDGE0_MAX_POLL_INTERVAL",
    "max_batch_size": "JUDGE0_MAX_BATCH_SIZE",
    "max_retries": "JUDGE0_MAX_RETRIES",
    "sync_threshold": "JUDGE0_SYNC_THRESHOLD",
}


class AuthMode(str, Enum):
    GATEWAY = "gateway"
    SELF_HOSTED = "self_hosted"


class Judge0Config(BaseModel):
    """
    Connection, polling and batching settings for a Judge0 backend.

    Parameters
    ----------
    api_url : str
        Backend base URL. A RapidAPI URL selects gateway authentication.
    api_key : str | None
        RapidAPI key in gateway mode, ``X-Auth-Token`` value otherwise.
    language_id : int
        Backend language identifier used for every submission.
    timeout : float
        Wall-clock polling deadline in seconds.
    initial_poll_interval : float
        First sleep between poll rounds, in seconds.
    max_poll_interval : float
        Upper bound of the sleep between poll rounds, in seconds.
    poll_backoff_factor : float
        Multiplier applied to the sleep after every round.
    max_batch_size : int
        Per-request item cap of the batch endpoints.
    max_retries : int
        Transport retries for submission requests.
    retry_delay : float
        Base delay between retries; the n-th retry waits ``n * retry_delay``.
    request_timeout : float
        Timeout of a single HTTP request, in seconds.
    sync_threshold : int
        Largest test count run in synchronous mode when the mode is ``auto``.
    max_concurrent_requests : int | None
        Bound on in-flight requests of one run, unbounded when ``None``.
    """

    model_config = ConfigDict(frozen=True)

    api_url: str = DEFAULT_API_URL
    api_key: str | None = None
    language_id: int = DEFAULT_LANGUAGE_ID
    timeout: float = Field(default=60.0, gt=0)
    initial_poll_interval: float = Field(default=0.1, gt=0)
    max_poll_interval: float = Field(default=1.0, gt=0)
    poll_backoff_factor: float = Field(default=1.5, ge=1.0)
    max_batch_size: int = Field(default=20, ge=1)
    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=0.5, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)
    sync_threshold: int = Field(default=100, ge=0)
    max_concurrent_requests: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_consistency(self) -> "Judge0Config":
        if self.max_poll_interval < self.initial_poll_interval:
            raise ConfigurationError(
                "max_poll_interval must be greater than or equal to initial_poll_interval"
            )
        if self.auth_mode is AuthMode.GATEWAY and not self.api_key:
            raise ConfigurationError("JUDGE0_API_KEY is required for RapidAPI")
        return self

    @classmethod
    def from_env(cls, **overrides: t.Any) -> "Judge0Config":
        """
        Build a configuration from ``JUDGE0_*`` environment variables.

        A ``.env`` file is loaded first when present; explicit keyword
        overrides win over the environment.

        Returns
        -------
        Judge0Config
            Validated configuration.
        """
        load_dotenv()
        values: dict[str, t.Any] = {}
        for field, env_var in _ENV_FIELDS.items():
            value = os.getenv(key=env_var)
            if value:
                values[field] = value
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(obj=values)

    @property
    def base_url(self) -> str:
        return self.api_url.rstrip("/")

    @property
    def auth_mode(self) -> AuthMode:
        if GATEWAY_HOSTNAME_MARKER in self.api_url:
            return AuthMode.GATEWAY
        return AuthMode.SELF_HOSTED

    def auth_headers(self) -> dict[str, str]:
        """
        Build authentication headers for the configured mode.

        Returns
        -------
        dict[str, str]
            Headers to attach to every request, empty for an open
            self-hosted instance.
        """
        if self.auth_mode is AuthMode.GATEWAY:
            return {
                "X-RapidAPI-Key": t.cast(str, self.api_key),
                "X-RapidAPI-Host": urlparse(self.api_url).hostname or DEFAULT_GATEWAY_HOST,
            }
        if self.api_key:
            return {"X-Auth-Token": self.api_key}
        return {}
