"""Configuration values for tunnel clients, workers and channels."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

LOGGER_NAME = "otstunnel"

DEFAULT_HEARTBEAT_INTERVAL = 30.0
DEFAULT_HEARTBEAT_TIMEOUT = 300.0


@dataclass(frozen=True)
class ChannelBackoffConfig:
    """Backoff of a stream channel worker; durations are in seconds."""

    max_delay: float = 5.0
    base_delay: float = 0.02
    factor: float = 5.0
    jitter: float = 0.25

    def with_defaults(self) -> ChannelBackoffConfig:
        """The default config, keeping only a positive ``max_delay`` from this one."""
        if self.max_delay > 0:
            return replace(DEFAULT_BACKOFF_CONFIG, max_delay=self.max_delay)
        return DEFAULT_BACKOFF_CONFIG


DEFAULT_BACKOFF_CONFIG = ChannelBackoffConfig()


@dataclass
class ChannelContext:
    """Identifies the channel a batch of records came from."""

    tunnel_id: str
    client_id: str
    channel_id: str
    trace_id: str = ""
    next_token: str = ""
    custom_value: Any = None

    def __str__(self) -> str:
        return f"TunnelId {self.tunnel_id}, ClientId {self.client_id}, ChannelId {self.channel_id}"


@dataclass(frozen=True)
class TunnelConfig:
    """Request settings of the tunnel API, in seconds."""

    max_retry_elapsed_time: float = 75.0
    request_timeout: float = 60.0


DEFAULT_TUNNEL_CONFIG = TunnelConfig()


@dataclass
class TunnelWorkerConfig:
    """Settings of a tunnel worker; zero or None selects the default."""

    heartbeat_timeout: float = 0.0
    heartbeat_interval: float = 0.0
    channel_dialer: Any = None
    processor_factory: Any = None
    logger: Any = None
    backoff_config: ChannelBackoffConfig | None = None