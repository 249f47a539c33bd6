# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
QuickTime / MPEG-4 (ISO-BMFF) creation time reader

This module reads the creation time from the 'mvhd' (Movie Header) atom
inside the 'moov' atom of MOV, MP4 and M4V files. Atoms other than 'moov'
are skipped by seeking, so 'mdat' payloads are never read.

Copyright 2025 DNAi inc.
"""

import io
import logging
import os
import struct
from pathlib import Path
from typing import BinaryIO, Iterator, NamedTuple, Optional, Union

from vidstamp.exceptions import MalformedContainerError, TimestampNotFoundError

logger = logging.getLogger(__name__)


class AtomHeader(NamedTuple):
    """Type and extent of one atom (box)."""

    atom_type: bytes
    offset: int
    header_size: int
    size: int

    @property
    def data_offset(self) -> int:
        return self.offset + self.header_size

    @property
    def end(self) -> int:
        return self.offset + self.size


class QuickTimeParser:
    """
    QuickTime/MP4 creation time reader.

    Example:
        >>> QuickTimeParser('clip.mp4').read_creation_time()
        1609372324
    """

    # Seconds between 1904-01-01 (QuickTime epoch) and 1970-01-01
    QUICKTIME_EPOCH_DELTA = 2082844800

    def __init__(
        self,
        file_path: Optional[Union[str, Path]] = None,
        file_data: Optional[bytes] = None,
    ):
        """
        Initialize QuickTime parser.

        Args:
            file_path: Path to MOV/MP4/M4V file
            file_data: Raw file data, used instead of file_path when given
        """
        self.file_path = file_path
        self.file_data = file_data
        self._stream: Optional[BinaryIO] = None

    def read_creation_time(self) -> int:
        """
        Read moov/mvhd creation time.

        Returns:
            UNIX seconds (UTC)

        Raises:
            MalformedContainerError: If an atom is truncated or oversized
            TimestampNotFoundError: If moov or mvhd is missing, or the
                creation time was never set
        """
        if self.file_data is not None:
            return self._scan(io.BytesIO(self.file_data))
        if self.file_path is None:
            raise ValueError("file_path or file_data is required")
        with open(self.file_path, 'rb') as f:
            return self._scan(f)

    def _scan(self, stream: BinaryIO) -> int:
        self._stream = stream
        length = stream.seek(0, os.SEEK_END)
        stream.seek(0)

        for atom in self._iter_atoms(0, length):
            if atom.atom_type != b'moov':
                continue
            logger.debug("moov at offset %d (%d bytes)", atom.offset, atom.size)
            for child in self._iter_atoms(atom.data_offset, atom.end):
                if child.atom_type == b'mvhd':
                    return self._read_mvhd(child)
            raise TimestampNotFoundError("no mvhd atom in moov")

        raise TimestampNotFoundError("no moov atom")

    def _read_mvhd(self, atom: AtomHeader) -> int:
        """
        Decode the creation time from an 'mvhd' atom.

        Version 0 stores creation time as 32 bits, version 1 as 64 bits.
        Only the version/flags word and the creation time are read.
        """
        self._stream.seek(atom.data_offset)
        version_flags = self._read_exact(4, atom.end, "mvhd version")
        version = version_flags[0]
        if version == 0:
            creation_time = struct.unpack('>I', self._read_exact(4, atom.end, "mvhd creation time"))[0]
        elif version == 1:
            creation_time = struct.unpack('>Q', self._read_exact(8, atom.end, "mvhd creation time"))[0]
        else:
            raise MalformedContainerError(f"unsupported mvhd version {version}")

        logger.debug("mvhd version %d, creation time %d", version, creation_time)
        if creation_time == 0:
            raise TimestampNotFoundError("mvhd creation time is not set")
        return creation_time - self.QUICKTIME_EPOCH_DELTA

    def _iter_atoms(self, start: int, end: int) -> Iterator[AtomHeader]:
        """
        Yield the atoms laid out between start and end.

        The stream is repositioned to the next atom after each yield,
        whatever the caller did with the previous one.
        """
        offset = start
        while offset < end:
            atom = self._read_atom_header(offset, end)
            yield atom
            offset = atom.end

    def _read_atom_header(self, offset: int, end: int) -> AtomHeader:
        """
        Read the atom header at offset.

        A 32-bit size of 1 means a 64-bit size follows the type; a size of
        0 means the atom runs to the end of its container.
        """
        self._stream.seek(offset)
        header = self._read_exact(8, end, "atom header")
        size, atom_type = struct.unpack('>I4s', header)
        header_size = 8
        if size == 1:
            size = struct.unpack('>Q', self._read_exact(8, end, "extended atom size"))[0]
            header_size = 16
        elif size == 0:
            size = end - offset

        if size < header_size:
            raise MalformedContainerError(
                f"atom {atom_type!r} at offset {offset} has invalid size {size}"
            )
        if offset + size > end:
            raise MalformedContainerError(
                f"atom {atom_type!r} at offset {offset} declares {size} bytes "
                f"but only {end - offset} remain"
            )
        return AtomHeader(atom_type, offset, header_size, size)

    def _read_exact(self, count: int, end: int, what: str) -> bytes:
        offset = self._stream.tell()
        if offset + count > end:
            raise MalformedContainerError(f"truncated {what} at offset {offset}")
        data = self._stream.read(count)
        if len(data) != count:
            raise MalformedContainerError(f"truncated {what} at offset {offset}")
        return data
