"""Tests for the QuickTime/MP4 creation time reader."""

from __future__ import annotations

import struct

import pytest

from vidstamp.bmff_parser import QuickTimeParser
from vidstamp.exceptions import MalformedContainerError, TimestampNotFoundError


def read(data: bytes) -> int:
    return QuickTimeParser(file_data=data).read_creation_time()


def test_version_0_creation_time(mp4) -> None:
    assert read(mp4.file(3692217124)) == 1609372324


def test_version_1_creation_time(mp4) -> None:
    assert read(mp4.file(3692217124, version=1)) == 1609372324


def test_version_1_uses_full_64_bit_field(mp4) -> None:
    creation_time = (1 << 32) + 5
    assert read(mp4.file(creation_time, version=1)) == creation_time - 2082844800


def test_reads_from_path(mp4, write_file) -> None:
    path = write_file("clip.mov", mp4.file(3692217124))
    assert QuickTimeParser(file_path=path).read_creation_time() == 1609372324


def test_moov_before_mdat(mp4) -> None:
    data = mp4.ftyp() + mp4.atom(b"moov", mp4.mvhd(3692217124)) + mp4.atom(b"mdat", b"\x00" * 10)
    assert read(data) == 1609372324


def test_extended_size_atoms_are_skipped(mp4) -> None:
    data = (
        mp4.ftyp()
        + mp4.atom(b"mdat", b"\x00" * 100, extended=True)
        + mp4.atom(b"moov", mp4.mvhd(3692217124))
    )
    assert read(data) == 1609372324


def test_extended_size_moov(mp4) -> None:
    data = mp4.ftyp() + mp4.atom(b"moov", mp4.mvhd(3692217124), extended=True)
    assert read(data) == 1609372324


def test_size_zero_atom_runs_to_end_of_file(mp4) -> None:
    moov_payload = mp4.atom(b"udta", b"\x00" * 12) + mp4.mvhd(3692217124)
    data = mp4.ftyp() + struct.pack(">I4s", 0, b"moov") + moov_payload
    assert read(data) == 1609372324


def test_size_zero_mdat_hides_later_atoms(mp4) -> None:
    data = mp4.ftyp() + struct.pack(">I4s", 0, b"mdat") + b"\x00" * 32
    with pytest.raises(TimestampNotFoundError, match="moov"):
        read(data)


def test_missing_moov(mp4) -> None:
    with pytest.raises(TimestampNotFoundError, match="moov"):
        read(mp4.ftyp() + mp4.atom(b"mdat", b"\x00" * 10))


def test_missing_mvhd(mp4) -> None:
    data = mp4.ftyp() + mp4.atom(b"moov", mp4.atom(b"trak", b"\x00" * 8))
    with pytest.raises(TimestampNotFoundError, match="mvhd"):
        read(data)


def test_unset_creation_time(mp4) -> None:
    with pytest.raises(TimestampNotFoundError, match="not set"):
        read(mp4.file(0))


def test_unknown_mvhd_version_is_malformed(mp4) -> None:
    mvhd = mp4.atom(b"mvhd", bytes([2, 0, 0, 0]) + b"\x00" * 96)
    with pytest.raises(MalformedContainerError, match="version"):
        read(mp4.ftyp() + mp4.atom(b"moov", mvhd))


def test_short_mvhd_is_malformed(mp4) -> None:
    mvhd = mp4.atom(b"mvhd", bytes([1, 0, 0, 0]) + b"\x00" * 4)
    with pytest.raises(MalformedContainerError):
        read(mp4.ftyp() + mp4.atom(b"moov", mvhd))


def test_truncated_file_is_malformed(mp4) -> None:
    data = mp4.file(3692217124)
    with pytest.raises(MalformedContainerError):
        read(data[:-20])


def test_truncated_header_is_malformed(mp4) -> None:
    with pytest.raises(MalformedContainerError):
        read(mp4.ftyp() + b"\x00\x00\x00")


def test_atom_smaller_than_header_is_malformed(mp4) -> None:
    with pytest.raises(MalformedContainerError, match="invalid size"):
        read(struct.pack(">I4s", 4, b"ftyp") + b"\x00" * 16)


def test_child_larger_than_moov_is_malformed(mp4) -> None:
    mvhd = mp4.mvhd(3692217124)
    moov = struct.pack(">I4s", 8 + 20, b"moov") + mvhd
    with pytest.raises(MalformedContainerError):
        read(mp4.ftyp() + moov)


def test_empty_file_has_no_moov() -> None:
    with pytest.raises(TimestampNotFoundError):
        read(b"")
