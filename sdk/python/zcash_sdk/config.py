"""
Configuration for the Zcash SDK

Both settings classes read environment variables (and a local .env file)
so deployments can be configured without code changes.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .address import Network


class NodeSettings(BaseSettings):
    """zcashd RPC endpoint (ZCASH_RPC_* variables)."""

    model_config = SettingsConfigDict(env_prefix="ZCASH_RPC_", env_file=".env", extra="ignore")

    url: str = "http://127.0.0.1:8232"
    user: str = ""
    password: str = ""
    timeout: float = Field(default=30.0, gt=0)
    network: Network = Network.MAINNET

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"RPC url must be http(s): {v}")
        return v.rstrip("/")


class PollingSettings(BaseSettings):
    """
    Backoff used while waiting on an operation (ZCASH_POLL_* variables).

    The delay between status queries starts at `initial_interval` and is
    multiplied by `multiplier` after each query, never exceeding
    `max_interval`. Waiting stops after `max_wait` seconds.
    """

    model_config = SettingsConfigDict(env_prefix="ZCASH_POLL_", env_file=".env", extra="ignore")

    initial_interval: float = Field(default=1.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)
    max_interval: float = Field(default=10.0, ge=0)
    max_wait: float = Field(default=300.0, ge=0)

    @model_validator(mode="after")
    def check_interval_bounds(self) -> "PollingSettings":
        if self.max_interval < self.initial_interval:
            raise ValueError("max_interval must be at least initial_interval")
        return self
