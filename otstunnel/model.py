"""Request, response and record types of the tunnel service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

FINISH_TAG = "finished"


class TunnelType(str, Enum):
    BASE_DATA = "BaseData"
    STREAM = "Stream"
    BASE_AND_STREAM = "BaseAndStream"


class ChannelType(str, Enum):
    BASE_DATA = "BaseData"
    STREAM = "Stream"


class ChannelStatus(str, Enum):
    OPEN = "OPEN"
    CLOSING = "CLOSING"
    CLOSE = "CLOSE"
    TERMINATED = "TERMINATED"
    WAIT = "WAIT"


class StartOffsetFlag(str, Enum):
    LATEST = "LATEST"
    EARLIEST = "EARLIEST"


class ActionType(IntEnum):
    PUT = 0
    UPDATE = 1
    DELETE = 2

    def __str__(self) -> str:
        return _ACTION_NAMES[self]


_ACTION_NAMES = {
    ActionType.PUT: "PutRow",
    ActionType.UPDATE: "UpdateRow",
    ActionType.DELETE: "DeleteRow",
}


class RecordColumnType(IntEnum):
    PUT = 0
    DELETE_ONE_VERSION = 1
    DELETE_ALL_VERSIONS = 2


@dataclass
class StreamTunnelConfig:
    flag: StartOffsetFlag = StartOffsetFlag.LATEST
    start_offset: int = 0
    end_offset: int = 0


@dataclass
class CreateTunnelRequest:
    table_name: str
    tunnel_name: str
    type: TunnelType
    stream_tunnel_config: StreamTunnelConfig | None = None


@dataclass
class CreateTunnelResponse:
    tunnel_id: str
    request_id: str = ""


@dataclass
class ListTunnelRequest:
    table_name: str


@dataclass
class TunnelInfo:
    tunnel_id: str
    tunnel_name: str
    tunnel_type: str
    table_name: str
    instance_name: str
    stream_id: str
    stage: str
    expired: bool = False
    create_time: datetime | None = None
    stream_tunnel_config: StreamTunnelConfig | None = None


@dataclass
class ListTunnelResponse:
    tunnels: list[TunnelInfo] = field(default_factory=list)
    request_id: str = ""


@dataclass
class DescribeTunnelRequest:
    table_name: str
    tunnel_name: str


@dataclass
class ChannelInfo:
    channel_id: str
    channel_type: str = ""
    channel_status: str = ""
    client_id: str = ""
    channel_rpo: int = 0


@dataclass
class DescribeTunnelResponse:
    tunnel_rpo: int = 0
    tunnel: TunnelInfo | None = None
    channels: list[ChannelInfo] = field(default_factory=list)
    request_id: str = ""


@dataclass
class GetRpoRequest:
    tunnel_id: str


@dataclass
class RpoLatency:
    channel_type: ChannelType | str = ""
    status: str = ""
    total_count: int = 0
    access_time: int = 0
    rpo_time: int = 0


@dataclass
class TunnelRpoLatency:
    status: str = ""
    total_count: int = 0
    access_time: int = 0
    rpo_time: int = 0


@dataclass
class GetRpoResponse:
    rpo_infos: dict[str, dict[str, RpoLatency]] = field(default_factory=dict)
    tunnel_rpo_infos: dict[str, TunnelRpoLatency] = field(default_factory=dict)


@dataclass
class ScheduleChannel:
    channel_id: str
    channel_status: ChannelStatus


def suspend_channel(channel_id: str) -> ScheduleChannel:
    return ScheduleChannel(channel_id, ChannelStatus.CLOSING)


def terminate_channel(channel_id: str) -> ScheduleChannel:
    return ScheduleChannel(channel_id, ChannelStatus.TERMINATED)


def resume_channel(channel_id: str) -> ScheduleChannel:
    return open_channel(channel_id)


def open_channel(channel_id: str) -> ScheduleChannel:
    return ScheduleChannel(channel_id, ChannelStatus.OPEN)


@dataclass
class ScheduleRequest:
    tunnel_id: str
    channels: list[ScheduleChannel] = field(default_factory=list)


@dataclass
class ScheduleResponse:
    request_id: str = ""


@dataclass
class DeleteTunnelRequest:
    table_name: str
    tunnel_name: str


@dataclass
class DeleteTunnelResponse:
    request_id: str = ""


@dataclass
class PrimaryKeyColumn:
    column_name: str
    value: Any = None

    def __str__(self) -> str:
        return f"{self.column_name}:{self.value}"


@dataclass
class PrimaryKey:
    primary_keys: list[PrimaryKeyColumn] = field(default_factory=list)

    def __str__(self) -> str:
        return "{[" + " ".join(str(c) for c in self.primary_keys) + "]}"


@dataclass
class SequenceInfo:
    epoch: int = 0
    timestamp: int = 0
    row_index: int = 0


@dataclass
class RecordColumn:
    type: RecordColumnType
    name: str
    value: Any = None
    timestamp: int | None = None

    def __str__(self) -> str:
        parts = [f'"Name":{json.dumps(self.name)}']
        if self.type == RecordColumnType.DELETE_ALL_VERSIONS:
            parts.append('"Type":"DeleteAllVersions"')
        elif self.type == RecordColumnType.DELETE_ONE_VERSION:
            parts.append('"Type":"DeleteOneVersion"')
            parts.append(f'"Timestamp":{self.timestamp}')
        elif self.type == RecordColumnType.PUT:
            parts.append('"Type":"Put"')
            parts.append(f'"Timestamp":{self.timestamp}')
            parts.append(f'"Value":{self.value}')
        return "{" + ", ".join(parts) + "}"


@dataclass
class Record:
    """A row change read from a tunnel; ``sequence_info`` is None for base data."""

    type: ActionType
    primary_key: PrimaryKey
    timestamp: int = 0
    sequence_info: SequenceInfo | None = None
    columns: list[RecordColumn] = field(default_factory=list)

    def __str__(self) -> str:
        columns = "[" + " ".join(str(c) for c in self.columns) + "]"
        return f'{{"Type":{self.type}, "PrimaryKey":{self.primary_key}, "Columns":{columns}}}'