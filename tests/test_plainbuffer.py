import struct

import pytest

from otstunnel.plainbuffer import (
    DELETE_ONE_VERSION,
    ColumnType,
    ColumnValue,
    PlainBufferCell,
    PlainBufferError,
    PlainBufferRow,
    RecordSequenceInfo,
    cell_value_checksum,
    crc8_byte,
    crc8_bytes,
    crc8_int32,
    crc8_int64,
    encode_cell_value,
    read_rows_with_header,
)

HEADER_BYTES = b"\x75\x00\x00\x00"


def _sample_row():
    return PlainBufferRow(
        primary_key=[
            PlainBufferCell(name=b"pk1", value=ColumnValue(ColumnType.STRING, "user")),
            PlainBufferCell(name=b"pk2", value=ColumnValue(ColumnType.INTEGER, -42)),
        ],
        cells=[
            PlainBufferCell(
                name=b"score",
                value=ColumnValue(ColumnType.DOUBLE, -1.5),
                timestamp=1000,
                has_timestamp=True,
            ),
            PlainBufferCell(name=b"flag", value=ColumnValue(ColumnType.BOOLEAN, True)),
            PlainBufferCell(name=b"blob", value=ColumnValue(ColumnType.BINARY, b"\x00\x01\xff")),
        ],
    )


def test_crc8_table_uses_polynomial_seven():
    assert crc8_byte(0, 1) == 0x07


def test_crc8_bytes_chains_bytes():
    assert crc8_bytes(0, b"ab") == crc8_byte(crc8_byte(0, ord("a")), ord("b"))


def test_crc8_int32_is_little_endian():
    assert crc8_int32(0, 0x01020304) == crc8_bytes(0, b"\x04\x03\x02\x01")


def test_crc8_negative_integers_use_twos_complement():
    assert crc8_int32(0, -1) == crc8_bytes(0, b"\xff" * 4)
    assert crc8_int64(0, -1) == crc8_bytes(0, b"\xff" * 8)


def test_encode_auto_increment_value():
    assert encode_cell_value(None) == b"\x05\x01\x00\x00\x00\x0b"


def test_encode_string_value():
    encoded = encode_cell_value(ColumnValue(ColumnType.STRING, "ab"))
    assert encoded == b"\x05\x07\x00\x00\x00\x03\x02\x00\x00\x00ab"


def test_auto_increment_checksum():
    assert cell_value_checksum(0, None) == crc8_byte(0, 0x0B)


def test_header_prefix():
    assert _sample_row().encode_with_header()[:4] == HEADER_BYTES


def test_cell_encoding_ends_with_checksum():
    cell = _sample_row().cells[0]
    encoded = cell.encode()
    assert encoded[0] == 0x03
    assert encoded[-2] == 0x0A
    assert encoded[-1] == cell.checksum(0)


def test_row_encoding_ends_with_checksum():
    row = _sample_row()
    encoded = row.encode()
    assert encoded[-2] == 0x09
    assert encoded[-1] == row.checksum(0)


def test_row_checksum_covers_delete_marker():
    assert PlainBufferRow().checksum(0) == crc8_byte(0, 0)
    assert PlainBufferRow(has_delete_marker=True).checksum(0) == crc8_byte(0, 1)


def test_round_trip():
    row = _sample_row()
    (decoded,) = read_rows_with_header(row.encode_with_header())
    assert [c.name for c in decoded.primary_key] == [b"pk1", b"pk2"]
    assert [c.value for c in decoded.primary_key] == [c.value for c in row.primary_key]
    assert [c.name for c in decoded.cells] == [b"score", b"flag", b"blob"]
    assert [c.value for c in decoded.cells] == [c.value for c in row.cells]
    assert decoded.cells[0].has_timestamp is True
    assert decoded.cells[0].timestamp == 1000
    assert decoded.cells[1].has_timestamp is False
    assert decoded.extension is None
    assert decoded.has_delete_marker is False


def test_round_trip_several_rows():
    first = _sample_row()
    second = PlainBufferRow(
        primary_key=[PlainBufferCell(name=b"id", value=ColumnValue(ColumnType.INTEGER, 7))]
    )
    data = first.encode_with_header() + second.encode()
    rows = read_rows_with_header(data)
    assert len(rows) == 2
    assert rows[1].primary_key[0].value == ColumnValue(ColumnType.INTEGER, 7)
    assert rows[1].cells == []


def test_delete_cell_round_trip():
    row = PlainBufferRow(
        primary_key=[PlainBufferCell(name=b"id", value=ColumnValue(ColumnType.STRING, "k"))],
        cells=[
            PlainBufferCell(
                name=b"col",
                ignore_value=True,
                has_cell_type=True,
                cell_type=DELETE_ONE_VERSION,
                has_timestamp=True,
                timestamp=55,
            )
        ],
    )
    (decoded,) = read_rows_with_header(row.encode_with_header())
    cell = decoded.cells[0]
    assert cell.value is None
    assert cell.cell_type == DELETE_ONE_VERSION
    assert cell.timestamp == 55


def test_delete_marker_is_read():
    (row,) = read_rows_with_header(HEADER_BYTES + b"\x01\x08\x09\x00")
    assert row.has_delete_marker is True
    assert row.primary_key == []


def test_extension_is_read():
    ext = (
        b"\x0b"
        + struct.pack("<i", 0)
        + b"\x0c"
        + struct.pack("<i", 0)
        + b"\x0d"
        + struct.pack("<i", 2)
        + b"\x0e"
        + struct.pack("<q", 1234)
        + b"\x0f"
        + struct.pack("<i", 5)
    )
    (row,) = read_rows_with_header(HEADER_BYTES + b"\x01" + ext + b"\x09\x00")
    assert row.extension == RecordSequenceInfo(epoch=2, timestamp=1234, row_index=5)


def test_invalid_header():
    with pytest.raises(PlainBufferError, match="Invalid header"):
        read_rows_with_header(b"\x76\x00\x00\x00\x01\x09\x00")


def test_short_header():
    with pytest.raises(PlainBufferError, match="unexpect io end"):
        read_rows_with_header(b"\x75\x00")


def test_truncated_row():
    data = _sample_row().encode_with_header()[:-1]
    with pytest.raises(PlainBufferError, match="unexpect io end"):
        read_rows_with_header(data)


def test_wrong_row_tag():
    with pytest.raises(PlainBufferError, match="unexpect tag"):
        read_rows_with_header(HEADER_BYTES + b"\x02")


def test_missing_row_checksum():
    with pytest.raises(PlainBufferError, match="expect checksum"):
        read_rows_with_header(HEADER_BYTES + b"\x01\x0c")