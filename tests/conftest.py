"""Builders for small in-memory Matroska and MP4 files."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Callable

import pytest

EBML_HEADER = 0x1A45DFA3
SEGMENT = 0x18538067
INFO = 0x1549A966
TRACKS = 0x1654AE6B
CLUSTER = 0x1F43B675
TAGS = 0x1254C367
TAG = 0x7373
SIMPLE_TAG = 0x67C8
TAG_NAME = 0x45A3
TAG_STRING = 0x4487
DATE_UTC = 0x4461
TIMESTAMP_SCALE = 0x2AD7B1
DOC_TYPE = 0x4282
VOID = 0xEC
SIMPLE_BLOCK = 0xA3

UNKNOWN_SIZE = b"\xff"


class Ebml:
    """EBML element encoder."""

    SEGMENT = SEGMENT
    INFO = INFO
    TRACKS = TRACKS
    CLUSTER = CLUSTER
    DATE_UTC = DATE_UTC
    VOID = VOID

    @staticmethod
    def element_id(value: int) -> bytes:
        return value.to_bytes((value.bit_length() + 7) // 8, "big")

    @staticmethod
    def size(value: int) -> bytes:
        length = 1
        while value >= (1 << (7 * length)) - 1:
            length += 1
        return ((1 << (7 * length)) | value).to_bytes(length, "big")

    @classmethod
    def element(cls, element_id: int, payload: bytes = b"", unknown_size: bool = False) -> bytes:
        size = UNKNOWN_SIZE if unknown_size else cls.size(len(payload))
        return cls.element_id(element_id) + size + payload

    @classmethod
    def header(cls) -> bytes:
        return cls.element(EBML_HEADER, cls.element(DOC_TYPE, b"matroska"))

    @classmethod
    def date_utc(cls, nanoseconds: int) -> bytes:
        return cls.element(DATE_UTC, nanoseconds.to_bytes(8, "big", signed=True))

    @classmethod
    def info(cls, nanoseconds: int | None = None, unknown_size: bool = False) -> bytes:
        payload = cls.element(TIMESTAMP_SCALE, (1000000).to_bytes(3, "big"))
        if nanoseconds is not None:
            payload += cls.date_utc(nanoseconds)
        return cls.element(INFO, payload, unknown_size=unknown_size)

    @classmethod
    def simple_tag(cls, name: str, value: str) -> bytes:
        return cls.element(
            SIMPLE_TAG,
            cls.element(TAG_NAME, name.encode()) + cls.element(TAG_STRING, value.encode()),
        )

    @classmethod
    def tags(cls, *simple_tags: bytes) -> bytes:
        return cls.element(TAGS, cls.element(TAG, b"".join(simple_tags)))

    @classmethod
    def cluster(cls, payload_size: int = 16, unknown_size: bool = False) -> bytes:
        block = cls.element(SIMPLE_BLOCK, b"\x00" * payload_size)
        return cls.element(CLUSTER, block, unknown_size=unknown_size)

    @classmethod
    def file(cls, *segment_children: bytes, unknown_size: bool = False) -> bytes:
        return cls.header() + cls.element(SEGMENT, b"".join(segment_children), unknown_size=unknown_size)


class Mp4:
    """ISO-BMFF atom encoder."""

    @staticmethod
    def atom(atom_type: bytes, payload: bytes = b"", extended: bool = False) -> bytes:
        if extended:
            return struct.pack(">I4sQ", 1, atom_type, len(payload) + 16) + payload
        return struct.pack(">I4s", len(payload) + 8, atom_type) + payload

    @classmethod
    def mvhd(cls, creation_time: int, version: int = 0) -> bytes:
        if version == 1:
            times = struct.pack(">QQIQ", creation_time, creation_time, 600, 6000)
        else:
            times = struct.pack(">IIII", creation_time, creation_time, 600, 6000)
        payload = bytes([version, 0, 0, 0]) + times + b"\x00" * 80
        return cls.atom(b"mvhd", payload)

    @classmethod
    def ftyp(cls) -> bytes:
        return cls.atom(b"ftyp", b"isom\x00\x00\x02\x00isomiso2mp41")

    @classmethod
    def file(cls, creation_time: int, version: int = 0) -> bytes:
        moov = cls.atom(b"moov", cls.mvhd(creation_time, version) + cls.atom(b"trak", b"\x00" * 32))
        return cls.ftyp() + cls.atom(b"mdat", b"\x00" * 64) + moov


@pytest.fixture
def ebml() -> type[Ebml]:
    return Ebml


@pytest.fixture
def mp4() -> type[Mp4]:
    return Mp4


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, bytes], Path]:
    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
