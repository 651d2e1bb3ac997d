"""Configuration for probe runtime wiring."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sequencer_probe.domain.models import Endpoint
from sequencer_probe.infrastructure.diagnostics.docker import DEFAULT_NODE_IMAGE
from sequencer_probe.infrastructure.rpc.client import DEFAULT_REQUEST_ID


class ProbeSettings(BaseSettings):
    """Probe configuration resolved from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- Node RPC ---
    rpc_endpoint: str = Field(default="localhost:8080", alias="NODE_RPC_ENDPOINT")
    rpc_request_id: int = Field(default=DEFAULT_REQUEST_ID, alias="NODE_RPC_REQUEST_ID")
    rpc_timeout_seconds: float = Field(default=5.0, gt=0, alias="NODE_RPC_TIMEOUT_SECONDS")

    # --- Polling ---
    poll_interval_seconds: float = Field(default=10.0, gt=0, alias="POLL_INTERVAL_SECONDS")
    poll_max_wait_seconds: float = Field(default=600.0, gt=0, alias="POLL_MAX_WAIT_SECONDS")
    startup_delay_seconds: float = Field(default=0.0, ge=0, alias="STARTUP_DELAY_SECONDS")

    # --- Output ---
    output_path: Path = Field(default=Path("aztec_node_output.txt"), alias="PROBE_OUTPUT_PATH")

    # --- Diagnostics ---
    session_name: str = Field(default="aztec", alias="NODE_SESSION_NAME")
    container_image: str = Field(default=DEFAULT_NODE_IMAGE, alias="NODE_CONTAINER_IMAGE")
    diagnostics_enabled: bool = Field(default=True, alias="NODE_DIAGNOSTICS_ENABLED")
    diagnostics_log_tail: int = Field(default=50, gt=0, alias="NODE_DIAGNOSTICS_LOG_TAIL")

    @field_validator("rpc_endpoint")
    @classmethod
    def _validate_endpoint(cls, value: str) -> str:
        Endpoint.parse(value)
        return value.strip()

    @model_validator(mode="after")
    def _validate_poll_window(self) -> ProbeSettings:
        if self.poll_interval_seconds > self.poll_max_wait_seconds:
            raise ValueError("POLL_INTERVAL_SECONDS must not exceed POLL_MAX_WAIT_SECONDS")
        if self.rpc_timeout_seconds > self.poll_interval_seconds:
            raise ValueError("NODE_RPC_TIMEOUT_SECONDS must not exceed POLL_INTERVAL_SECONDS")
        return self

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint.parse(self.rpc_endpoint)

    # --- Loader ---
    @classmethod
    def load(cls, **overrides: Any) -> ProbeSettings:
        """Resolve settings, letting explicit (non-None) overrides win over the environment."""

        init_kwargs = {
            _alias_for(cls, key): value for key, value in overrides.items() if value is not None
        }
        instance = cls(**init_kwargs)
        logger = logging.getLogger("sequencer_probe.settings")
        logger.info("probe settings loaded: %r", instance)
        return instance


def _alias_for(settings_cls: type[BaseSettings], name: str) -> str:
    field = settings_cls.model_fields.get(name)
    if field is None or field.alias is None:
        return name
    return field.alias


__all__ = ["ProbeSettings"]
