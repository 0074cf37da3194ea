"""Plain buffer row encoding used by the tunnel service for record payloads."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

HEADER = 0x75

TAG_ROW_PK = 0x1
TAG_ROW_DATA = 0x2
TAG_CELL = 0x3
TAG_CELL_NAME = 0x4
TAG_CELL_VALUE = 0x5
TAG_CELL_TYPE = 0x6
TAG_CELL_TIMESTAMP = 0x7
TAG_DELETE_ROW_MARKER = 0x8
TAG_ROW_CHECKSUM = 0x9
TAG_CELL_CHECKSUM = 0x0A
TAG_EXTENSION = 0x0B
TAG_SEQ_INFO = 0x0C
TAG_SEQ_INFO_EPOCH = 0x0D
TAG_SEQ_INFO_TS = 0x0E
TAG_SEQ_INFO_ROW_INDEX = 0x0F

DELETE_ALL_VERSION = 0x1
DELETE_ONE_VERSION = 0x3

VT_INTEGER = 0x0
VT_DOUBLE = 0x1
VT_BOOLEAN = 0x2
VT_STRING = 0x3
VT_BLOB = 0x7
VT_INF_MIN = 0x9
VT_INF_MAX = 0xA
VT_AUTO_INCREMENT = 0xB

LITTLE_ENDIAN_32_SIZE = 4
LITTLE_ENDIAN_64_SIZE = 8

ERR_UNEXPECTED_IO_END = "[tablestore] unexpect io end"
ERR_TAG = "[tablestore] unexpect tag"
ERR_NO_CHECKSUM = "[tablestore] expect checksum"
ERR_CHECKSUM = "[tablestore] checksum failed"
ERR_INVALID_INPUT = "[tablestore] invalid input"
ERR_INVALID_HEADER = "Invalid header from plain buffer"


class PlainBufferError(ValueError):
    """Raised when a plain buffer cannot be decoded."""


def _build_crc8_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        x = i
        for _ in range(8):
            x = ((x << 1) ^ 0x07) & 0xFF if x & 0x80 else (x << 1) & 0xFF
        table.append(x)
    return tuple(table)


_CRC8_TABLE = _build_crc8_table()


def crc8_byte(crc: int, value: int) -> int:
    """Fold one byte into a CRC-8 checksum."""
    return _CRC8_TABLE[(crc ^ value) & 0xFF]


def crc8_int32(crc: int, value: int) -> int:
    """Fold a 32-bit integer, least significant byte first."""
    for _ in range(4):
        crc = crc8_byte(crc, value & 0xFF)
        value >>= 8
    return crc


def crc8_int64(crc: int, value: int) -> int:
    """Fold a 64-bit integer, least significant byte first."""
    for _ in range(8):
        crc = crc8_byte(crc, value & 0xFF)
        value >>= 8
    return crc


def crc8_bytes(crc: int, data: bytes) -> int:
    """Fold a byte string into a CRC-8 checksum."""
    for b in data:
        crc = crc8_byte(crc, b)
    return crc


def _le32(value: int) -> bytes:
    return struct.pack("<I", value & 0xFFFFFFFF)


def _le64(value: int) -> bytes:
    return struct.pack("<Q", value & 0xFFFFFFFFFFFFFFFF)


def _double_bits(value: float) -> int:
    return struct.unpack("<q", struct.pack("<d", value))[0]


class ColumnType(IntEnum):
    STRING = 1
    INTEGER = 2
    BOOLEAN = 3
    DOUBLE = 4
    BINARY = 5
    MIN = 6
    MAX = 7


@dataclass
class ColumnValue:
    """A typed cell value; ``type`` is None for values of unknown kind."""

    type: ColumnType | None
    value: Any = None


def encode_cell_value(value: ColumnValue | None) -> bytes:
    """Encode a cell value with its tag; None encodes an auto-increment marker."""
    out = bytearray([TAG_CELL_VALUE])
    if value is None:
        out += _le32(1)
        out.append(VT_AUTO_INCREMENT)
        return bytes(out)
    if value.type == ColumnType.STRING:
        raw = value.value.encode("utf-8")
        out += _le32(LITTLE_ENDIAN_32_SIZE + 1 + len(raw))
        out.append(VT_STRING)
        out += _le32(len(raw))
        out += raw
    elif value.type == ColumnType.INTEGER:
        out += _le32(LITTLE_ENDIAN_64_SIZE + 1)
        out.append(VT_INTEGER)
        out += _le64(value.value)
    elif value.type == ColumnType.BOOLEAN:
        out += _le32(2)
        out.append(VT_BOOLEAN)
        out.append(1 if value.value else 0)
    elif value.type == ColumnType.DOUBLE:
        out += _le32(LITTLE_ENDIAN_64_SIZE + 1)
        out.append(VT_DOUBLE)
        out += _le64(_double_bits(value.value))
    elif value.type == ColumnType.BINARY:
        raw = bytes(value.value)
        out += _le32(LITTLE_ENDIAN_32_SIZE + 1 + len(raw))
        out.append(VT_BLOB)
        out += _le32(len(raw))
        out += raw
    return bytes(out)


def cell_value_checksum(crc: int, value: ColumnValue | None) -> int:
    """Fold a cell value into a checksum."""
    if value is None:
        return crc8_byte(crc, VT_AUTO_INCREMENT)
    if value.type == ColumnType.STRING:
        raw = value.value.encode("utf-8")
        crc = crc8_byte(crc, VT_STRING)
        crc = crc8_int32(crc, len(raw))
        crc = crc8_bytes(crc, raw)
    elif value.type == ColumnType.INTEGER:
        crc = crc8_byte(crc, VT_INTEGER)
        crc = crc8_int64(crc, value.value)
    elif value.type == ColumnType.BOOLEAN:
        crc = crc8_byte(crc, VT_BOOLEAN)
        crc = crc8_byte(crc, 0x1 if value.value else 0x0)
    elif value.type == ColumnType.DOUBLE:
        crc = crc8_byte(crc, VT_DOUBLE)
        crc = crc8_int64(crc, _double_bits(value.value))
    elif value.type == ColumnType.BINARY:
        raw = bytes(value.value)
        crc = crc8_byte(crc, VT_BLOB)
        crc = crc8_int32(crc, len(raw))
        crc = crc8_bytes(crc, raw)
    return crc


@dataclass
class PlainBufferCell:
    name: bytes
    value: ColumnValue | None = None
    timestamp: int = 0
    cell_type: int = 0
    ignore_value: bool = False
    has_timestamp: bool = False
    has_cell_type: bool = False

    def checksum(self, crc: int) -> int:
        crc = crc8_bytes(crc, self.name)
        if not self.ignore_value:
            crc = cell_value_checksum(crc, self.value)
        if self.has_timestamp:
            crc = crc8_int64(crc, self.timestamp)
        if self.has_cell_type:
            crc = crc8_byte(crc, self.cell_type)
        return crc

    def encode(self) -> bytes:
        out = bytearray([TAG_CELL, TAG_CELL_NAME])
        out += _le32(len(self.name))
        out += self.name
        if not self.ignore_value:
            out += encode_cell_value(self.value)
        if self.has_cell_type:
            out += bytes([TAG_CELL_TYPE, self.cell_type])
        if self.has_timestamp:
            out.append(TAG_CELL_TIMESTAMP)
            out += _le64(self.timestamp)
        out += bytes([TAG_CELL_CHECKSUM, self.checksum(0)])
        return bytes(out)


@dataclass
class RecordSequenceInfo:
    epoch: int = 0
    timestamp: int = 0
    row_index: int = 0


@dataclass
class PlainBufferRow:
    primary_key: list[PlainBufferCell] = field(default_factory=list)
    cells: list[PlainBufferCell] = field(default_factory=list)
    has_delete_marker: bool = False
    extension: RecordSequenceInfo | None = None

    def checksum(self, crc: int) -> int:
        for cell in (*self.primary_key, *self.cells):
            crc = crc8_byte(crc, cell.checksum(0))
        return crc8_byte(crc, 0x1 if self.has_delete_marker else 0x0)

    def encode(self) -> bytes:
        out = bytearray([TAG_ROW_PK])
        for pk in self.primary_key:
            out += pk.encode()
        if self.cells:
            out.append(TAG_ROW_DATA)
            for cell in self.cells:
                out += cell.encode()
        out += bytes([TAG_ROW_CHECKSUM, self.checksum(0)])
        return bytes(out)

    def encode_with_header(self) -> bytes:
        return _le32(HEADER) + self.encode()


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def _take(self, size: int) -> bytes:
        if size < 0:
            raise PlainBufferError(ERR_INVALID_INPUT)
        if self.remaining < size:
            raise PlainBufferError(ERR_UNEXPECTED_IO_END)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def byte(self) -> int:
        return self._take(1)[0]

    def int32(self) -> int:
        return struct.unpack("<i", self._take(4))[0]

    def int64(self) -> int:
        return struct.unpack("<q", self._take(8))[0]

    def sized_bytes(self) -> bytes:
        return self._take(self.int32())

    def unread(self) -> None:
        self._pos -= 1

    def expect(self, tag: int) -> None:
        if self.byte() != tag:
            raise PlainBufferError(ERR_TAG)


def _read_cell_value(r: _Reader) -> ColumnValue:
    r.int32()
    kind = r.byte()
    if kind == VT_INTEGER:
        return ColumnValue(ColumnType.INTEGER, r.int64())
    if kind == VT_DOUBLE:
        return ColumnValue(ColumnType.DOUBLE, struct.unpack("<d", struct.pack("<q", r.int64()))[0])
    if kind == VT_BOOLEAN:
        return ColumnValue(ColumnType.BOOLEAN, r.byte() != 0)
    if kind == VT_STRING:
        return ColumnValue(ColumnType.STRING, r.sized_bytes().decode("utf-8", errors="replace"))
    if kind == VT_BLOB:
        return ColumnValue(ColumnType.BINARY, r.sized_bytes())
    if kind == VT_INF_MAX:
        return ColumnValue(ColumnType.MAX)
    if kind == VT_INF_MIN:
        return ColumnValue(ColumnType.MIN)
    return ColumnValue(None)


def _read_cell(r: _Reader) -> PlainBufferCell:
    r.expect(TAG_CELL_NAME)
    cell = PlainBufferCell(name=r.sized_bytes())
    tag = r.byte()
    if tag == TAG_CELL_VALUE:
        cell.value = _read_cell_value(r)
        tag = r.byte()
    if tag == TAG_CELL_TYPE:
        kind = r.byte()
        if kind in (DELETE_ALL_VERSION, DELETE_ONE_VERSION):
            cell.cell_type = kind
        tag = r.byte()
    if tag == TAG_CELL_TIMESTAMP:
        cell.timestamp = r.int64()
        cell.has_timestamp = True
        tag = r.byte()
    if tag != TAG_CELL_CHECKSUM:
        raise PlainBufferError(ERR_NO_CHECKSUM)
    r.byte()
    return cell


def _read_cells(r: _Reader) -> list[PlainBufferCell]:
    cells = []
    while r.byte() == TAG_CELL:
        cells.append(_read_cell(r))
    r.unread()
    return cells


def _read_extension(r: _Reader) -> RecordSequenceInfo:
    r.int32()
    r.expect(TAG_SEQ_INFO)
    r.int32()
    r.expect(TAG_SEQ_INFO_EPOCH)
    epoch = r.int32()
    r.expect(TAG_SEQ_INFO_TS)
    timestamp = r.int64()
    r.expect(TAG_SEQ_INFO_ROW_INDEX)
    row_index = r.int32()
    return RecordSequenceInfo(epoch=epoch, timestamp=timestamp, row_index=row_index)


def _read_row(r: _Reader) -> PlainBufferRow:
    r.expect(TAG_ROW_PK)
    row = PlainBufferRow(primary_key=_read_cells(r))
    tag = r.byte()
    if tag == TAG_ROW_DATA:
        row.cells = _read_cells(r)
        tag = r.byte()
    if tag == TAG_DELETE_ROW_MARKER:
        row.has_delete_marker = True
        tag = r.byte()
    if tag == TAG_EXTENSION:
        row.extension = _read_extension(r)
        tag = r.byte()
    if tag != TAG_ROW_CHECKSUM:
        raise PlainBufferError(ERR_NO_CHECKSUM)
    r.byte()
    return row


def read_rows_with_header(data: bytes) -> list[PlainBufferRow]:
    """Decode every row of a plain buffer that starts with the format header."""
    reader = _Reader(data)
    if reader.int32() != HEADER:
        raise PlainBufferError(ERR_INVALID_HEADER)
    rows = []
    while reader.remaining > 0:
        rows.append(_read_row(reader))
    return rows