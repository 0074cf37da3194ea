# otstunnel

Building blocks for consuming Tablestore tunnels from Python. The package has
no third-party runtime dependencies and supports Python 3.10 and later.

## Modules

- `otstunnel.plainbuffer`: the plain-buffer row format that carries tunnel
  records.
- `otstunnel.model`: request and response models for tunnel management, the
  record model and channel scheduling helpers.
- `otstunnel.config`: configuration values and the `ChannelContext` handed to
  record callbacks.
- `otstunnel.processor`: channel processors that pass records to your
  function and checkpoint the latest token in the background.

## Plain buffer rows

`PlainBufferRow` holds a list of primary key cells and a list of data cells
(`PlainBufferCell`), each with an optional typed `ColumnValue`. Rows are
encoded with `PlainBufferRow.encode()` or, with the format header in front,
`PlainBufferRow.encode_with_header()`. `read_rows_with_header(data)` decodes
every row of a buffer that starts with the header.

```python
from otstunnel.plainbuffer import (
    ColumnType,
    ColumnValue,
    PlainBufferCell,
    PlainBufferRow,
    read_rows_with_header,
)

row = PlainBufferRow(
    primary_key=[PlainBufferCell(name=b"id", value=ColumnValue(ColumnType.STRING, "row-1"))],
    cells=[
        PlainBufferCell(
            name=b"count",
            value=ColumnValue(ColumnType.INTEGER, 3),
            timestamp=1700000000000,
            has_timestamp=True,
        )
    ],
)
rows = read_rows_with_header(row.encode_with_header())
assert rows[0].primary_key[0].value.value == "row-1"
assert rows[0].cells[0].value.value == 3
```

Supported value types are strings, integers, booleans, doubles and binary;
the decoder also recognises the infinite minimum and maximum markers. Rows may
carry a delete marker and a sequence extension (`RecordSequenceInfo`: epoch,
timestamp, row index).

Cells and rows are written with CRC-8 checksums, computed with `crc8_byte`,
`crc8_int32`, `crc8_int64` and `crc8_bytes` (and `cell_value_checksum`,
`PlainBufferCell.checksum`, `PlainBufferRow.checksum`). The decoder checks that
each checksum byte is present but does not compare its value.

Malformed input raises `PlainBufferError` (a `ValueError`): a wrong header,
truncated data, an unexpected tag or a missing checksum.

## Models

`otstunnel.model` defines dataclasses for tunnel management requests and
responses (`CreateTunnelRequest`, `ListTunnelResponse`, `TunnelInfo`,
`DescribeTunnelResponse`, `ChannelInfo`, `GetRpoResponse`, `ScheduleRequest`,
`DeleteTunnelRequest`, ...) and the enums `TunnelType`, `ChannelType`,
`ChannelStatus`, `StartOffsetFlag`, `ActionType` and `RecordColumnType`.

Records are described by `Record`, `RecordColumn`, `PrimaryKey`,
`PrimaryKeyColumn` and `SequenceInfo` (`sequence_info` is `None` for base
data). `str(record)` gives a JSON-like summary; `str(ActionType.PUT)` is
`"PutRow"`.

The scheduling helpers build a `ScheduleChannel` for a channel id:
`suspend_channel` (status `CLOSING`), `terminate_channel` (`TERMINATED`),
and `open_channel` and `resume_channel` (both `OPEN`).

## Configuration

- `ChannelBackoffConfig`: stream channel backoff in seconds (default maximum
  delay 5 s, base delay 20 ms, factor 5, jitter 0.25). `with_defaults()`
  returns the default configuration, keeping this one's `max_delay` when it is
  positive.
- `TunnelConfig`: request retry budget (75 s) and request timeout (60 s).
- `TunnelWorkerConfig`: heartbeat timeout and interval, channel dialer,
  processor factory, logger and backoff configuration; zero or `None` means
  "use the default" (`DEFAULT_HEARTBEAT_INTERVAL` is 30 s,
  `DEFAULT_HEARTBEAT_TIMEOUT` 300 s).
- `ChannelContext`: tunnel, client and channel ids, trace id, next token and
  your custom value.

## Writing a record consumer

A consumer is an ordinary function that receives a `ChannelContext` and a
list of records. `SimpleProcessFactory.new_processor(tunnel_id, client_id,
channel_id, checkpointer)` turns it into a `DefaultProcessor`. The
checkpointer is any object with a `checkpoint(token)` method.

```python
from otstunnel.processor import SimpleProcessFactory


class PrintCheckpointer:
    def checkpoint(self, token):
        print("saved", token)


def consume(ctx, records):
    print("custom value:", ctx.custom_value)
    for record in records:
        print("record:", record)


factory = SimpleProcessFactory(
    custom_value="anything you need in the callback",
    cp_interval=1.0,
    process_func=consume,
    shutdown_func=lambda ctx: print("channel", ctx.channel_id, "closed"),
)
processor = factory.new_processor("tunnel-id", "client-id", "channel-id", PrintCheckpointer())
processor.process([], "next-token", "trace-id")
processor.shutdown()
```

`process(records, next_token, trace_id)` calls your function only when there
are records; an exception from it propagates to the caller. The token is then
queued, and a background thread saves the latest queued token every
`cp_interval` seconds (10 s by default). `shutdown()` saves any token still
queued, stops the thread and calls the shutdown function once; further calls
do nothing. Checkpoint failures are logged on the `otstunnel` logger.

## What the package does not do

It does not talk to the tunnel service. There is no HTTP client for creating,
listing, describing, deleting or scheduling tunnels, no heartbeat or worker
loop that reads records from channels, and no store for checkpoints: the
management models and `TunnelWorkerConfig` only hold values, and a checkpointer
must be supplied by you. Decoded plain-buffer rows are not turned into
`Record` objects for you.

## Running the tests

```
pip install -e ".[test]"
pytest
```