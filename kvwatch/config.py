"""Watcher and store configuration."""

import os
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CONSUL_ADDRESS = "http://127.0.0.1:8500"


class WatcherConfig(BaseModel):
    """Timing parameters of a watcher."""

    model_config = ConfigDict(frozen=True)

    retry_time: float = Field(default=0.5, gt=0, description="Initial delay before retrying a failed read.")
    max_retry_time: float = Field(default=60.0, gt=0, description="Upper bound of the retry delay.")
    debounce_time: float = Field(default=0.0, ge=0, description="Quiet period used to coalesce bursts of changes.")

    @model_validator(mode="after")
    def validate_retry_bounds(self) -> Self:
        """Check that the retry cap is not below the initial delay."""
        if self.max_retry_time < self.retry_time:
            raise ValueError("max_retry_time must be >= retry_time")
        return self


class ConsulConfig(BaseModel):
    """Connection settings of the Consul HTTP API."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(default=DEFAULT_CONSUL_ADDRESS, description="Base URL of the agent.")
    token: str | None = Field(default=None, description="ACL token sent as X-Consul-Token.")
    datacenter: str | None = None
    namespace: str | None = None
    request_timeout_margin: float = Field(
        default=5.0, ge=0, description="Seconds to wait past the long-poll wait time before timing out."
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, address: str) -> str:
        """Default the scheme to http and strip trailing slashes."""
        address = address.strip().rstrip("/")
        if not address:
            raise ValueError("address must not be empty")
        if "://" not in address:
            address = f"http://{address}"
        return address

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Self:
        """Build a config from the conventional CONSUL_* environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        address = env.get("CONSUL_HTTP_ADDR")
        if address:
            if "://" not in address and env.get("CONSUL_HTTP_SSL", "").strip().lower() in {"1", "true", "yes", "on"}:
                address = f"https://{address}"
            values["address"] = address
        if env.get("CONSUL_HTTP_TOKEN"):
            values["token"] = env["CONSUL_HTTP_TOKEN"]
        if env.get("CONSUL_NAMESPACE"):
            values["namespace"] = env["CONSUL_NAMESPACE"]
        return cls(**values)
