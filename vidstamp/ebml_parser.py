# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Matroska (EBML) creation time reader

This module walks the EBML element tree of an MKV file just far enough to
find the file's creation time. Only the Segment, Info and Tags branches are
descended into; every other element (Clusters in particular) is skipped by
seeking past its payload, so arbitrarily large files are never buffered.

Two sources are consulted:
- Segment/Info/DateUTC: nanoseconds since 2001-01-01T00:00:00 UTC
- Segment/Tags/Tag/SimpleTag "com.apple.quicktime.creationdate": an
  ISO 8601 string written when Apple footage is remuxed to Matroska.
  It carries the recording device's zone and wins over DateUTC.

Copyright 2025 DNAi inc.
"""

import io
import logging
import os
from pathlib import Path
from typing import BinaryIO, FrozenSet, Iterator, NamedTuple, Optional, Tuple, Union

from dateutil import parser as dateparser

from vidstamp.exceptions import MalformedContainerError, TimestampNotFoundError

logger = logging.getLogger(__name__)


class ElementHeader(NamedTuple):
    """ID and payload location of one EBML element."""

    element_id: int
    header_offset: int
    data_offset: int
    # None when the element was written with an "unknown" size
    data_size: Optional[int]


class MatroskaParser:
    """
    Matroska creation time reader.

    Example:
        >>> MatroskaParser('clip.mkv').read_creation_time()
        1673743924.0
    """

    EBML_HEADER_ID = 0x1A45DFA3
    SEGMENT_ID = 0x18538067

    # Segment children (level 1)
    SEEK_HEAD_ID = 0x114D9B74
    INFO_ID = 0x1549A966
    TRACKS_ID = 0x1654AE6B
    CLUSTER_ID = 0x1F43B675
    CUES_ID = 0x1C53BB6B
    ATTACHMENTS_ID = 0x1941A469
    CHAPTERS_ID = 0x1043A770
    TAGS_ID = 0x1254C367

    DATE_UTC_ID = 0x4461
    TAG_ID = 0x7373
    SIMPLE_TAG_ID = 0x67C8
    TAG_NAME_ID = 0x45A3
    TAG_STRING_ID = 0x4487

    LEVEL1_IDS: FrozenSet[int] = frozenset({
        SEEK_HEAD_ID, INFO_ID, TRACKS_ID, CLUSTER_ID,
        CUES_ID, ATTACHMENTS_ID, CHAPTERS_ID, TAGS_ID,
    })
    TOP_LEVEL_IDS: FrozenSet[int] = frozenset({EBML_HEADER_ID, SEGMENT_ID})

    # 2001-01-01T00:00:00Z in UNIX seconds
    MATROSKA_EPOCH = 978307200

    APPLE_CREATION_DATE_TAG = 'com.apple.quicktime.creationdate'

    # Tag strings longer than this are not dates; skip instead of reading
    MAX_TAG_STRING_SIZE = 4096

    def __init__(
        self,
        file_path: Optional[Union[str, Path]] = None,
        file_data: Optional[bytes] = None,
    ):
        """
        Initialize Matroska parser.

        Args:
            file_path: Path to MKV file
            file_data: Raw file data, used instead of file_path when given
        """
        self.file_path = file_path
        self.file_data = file_data
        self._stream: Optional[BinaryIO] = None
        self._length = 0

    def read_creation_time(self) -> float:
        """
        Read the creation time of the file.

        Returns:
            UNIX seconds (UTC, possibly fractional)

        Raises:
            MalformedContainerError: If the element structure is inconsistent
            TimestampNotFoundError: If no creation time is recorded
        """
        if self.file_data is not None:
            return self._scan(io.BytesIO(self.file_data))
        if self.file_path is None:
            raise ValueError("file_path or file_data is required")
        with open(self.file_path, 'rb') as f:
            return self._scan(f)

    def _scan(self, stream: BinaryIO) -> float:
        self._stream = stream
        self._length = stream.seek(0, os.SEEK_END)
        stream.seek(0)

        header = self._read_element_header(self._length)
        if header is None or header.element_id != self.EBML_HEADER_ID:
            raise MalformedContainerError("missing EBML header")
        self._skip(header, self._length)

        while True:
            header = self._read_element_header(self._length)
            if header is None:
                raise TimestampNotFoundError("no Segment element")
            if header.element_id == self.SEGMENT_ID:
                return self._scan_segment(header)
            self._skip(header, self._length)

    def _scan_segment(self, segment: ElementHeader) -> float:
        logger.debug("Segment at offset %d (size %s)", segment.header_offset, segment.data_size)
        date_utc: Optional[float] = None
        saw_info = False

        for child in self._iter_children(segment, self._length):
            if child.element_id == self.INFO_ID:
                saw_info = True
                value = self._scan_info(child, self._end_of(segment, self._length))
                if value is not None and date_utc is None:
                    date_utc = value
            elif child.element_id == self.TAGS_ID:
                apple_date = self._scan_tags(child, self._end_of(segment, self._length))
                if apple_date is not None:
                    logger.debug("Using %s tag", self.APPLE_CREATION_DATE_TAG)
                    return apple_date
            elif date_utc is not None and child.data_size is None:
                # Tags after an unknown-size element are not searched once
                # DateUTC is known; walking the element would touch every block
                logger.debug(
                    "Stopping at unknown-size element 0x%X at offset %d",
                    child.element_id, child.header_offset,
                )
                break
            else:
                self._skip(child, self._end_of(segment, self._length))

        if date_utc is not None:
            return date_utc
        if not saw_info:
            raise TimestampNotFoundError("no Info element in Segment")
        raise TimestampNotFoundError("no DateUTC element in Info")

    def _scan_info(self, info: ElementHeader, limit: int) -> Optional[float]:
        date_utc = None
        for child in self._iter_children(info, limit):
            if child.element_id == self.DATE_UTC_ID:
                date_utc = self._read_date(child)
            else:
                self._skip(child, self._end_of(info, limit))
        return date_utc

    def _read_date(self, element: ElementHeader) -> float:
        """Decode a DateUTC payload (signed nanoseconds since 2001-01-01)."""
        if element.data_size is None or element.data_size > 8:
            raise MalformedContainerError(
                f"DateUTC at offset {element.header_offset} has invalid size {element.data_size}"
            )
        data = self._read_exact(element.data_size, element.data_offset + element.data_size, "DateUTC")
        nanoseconds = int.from_bytes(data, 'big', signed=True)
        logger.debug("DateUTC = %d ns", nanoseconds)
        return self.MATROSKA_EPOCH + nanoseconds / 1e9

    def _scan_tags(self, tags: ElementHeader, limit: int) -> Optional[float]:
        tags_end = self._end_of(tags, limit)
        for tag in self._iter_children(tags, limit):
            if tag.element_id != self.TAG_ID:
                self._skip(tag, tags_end)
                continue
            tag_end = self._end_of(tag, tags_end)
            for simple in self._iter_children(tag, tags_end):
                if simple.element_id == self.SIMPLE_TAG_ID:
                    value = self._scan_simple_tag(simple, tag_end)
                    if value is not None:
                        return value
                else:
                    self._skip(simple, tag_end)
        return None

    def _scan_simple_tag(self, simple: ElementHeader, limit: int) -> Optional[float]:
        """
        Look for the Apple creation date in one SimpleTag.

        SimpleTags may nest, so children are searched as well.
        """
        simple_end = self._end_of(simple, limit)
        name = None
        value = None
        for child in self._iter_children(simple, limit):
            if child.element_id == self.TAG_NAME_ID:
                name = self._read_string(child, simple_end)
            elif child.element_id == self.TAG_STRING_ID:
                value = self._read_string(child, simple_end)
            elif child.element_id == self.SIMPLE_TAG_ID:
                nested = self._scan_simple_tag(child, simple_end)
                if nested is not None:
                    return nested
            else:
                self._skip(child, simple_end)

        if name is None or value is None:
            return None
        if name.lower() != self.APPLE_CREATION_DATE_TAG:
            return None
        return self._parse_apple_date(value)

    @staticmethod
    def _parse_apple_date(value: str) -> Optional[float]:
        """Parse an ISO 8601 tag value; values without a zone are ignored."""
        try:
            dt = dateparser.isoparse(value.strip())
        except ValueError:
            logger.debug("Ignoring unparseable creation date %r", value)
            return None
        if dt.tzinfo is None:
            logger.debug("Ignoring creation date without zone %r", value)
            return None
        return dt.timestamp()

    def _read_string(self, element: ElementHeader, limit: int) -> Optional[str]:
        if element.data_size is None or element.data_size > self.MAX_TAG_STRING_SIZE:
            self._skip(element, limit)
            return None
        data = self._read_exact(element.data_size, element.data_offset + element.data_size, "tag string")
        return data.rstrip(b'\x00').decode('utf-8', errors='replace')

    def _iter_children(self, parent: ElementHeader, limit: int) -> Iterator[ElementHeader]:
        """
        Yield the direct children of a master element.

        The caller must either descend into or skip each yielded child.
        For a parent of unknown size, iteration stops at the first element
        that can only appear at the parent's level or above; the stream is
        left positioned at that element.

        Args:
            parent: Master element whose payload starts at the stream position
            limit: End of the enclosing element, used when parent size is unknown
        """
        end = self._end_of(parent, limit)
        terminators = self._terminators(parent.element_id) if parent.data_size is None else frozenset()
        while True:
            child = self._read_element_header(end)
            if child is None:
                return
            if child.element_id in terminators:
                self._stream.seek(child.header_offset)
                return
            yield child
            if child.data_size is not None:
                self._stream.seek(child.data_offset + child.data_size)

    def _terminators(self, element_id: int) -> FrozenSet[int]:
        if element_id == self.SEGMENT_ID:
            return self.TOP_LEVEL_IDS
        return self.TOP_LEVEL_IDS | self.LEVEL1_IDS

    def _skip(self, element: ElementHeader, limit: int) -> None:
        """Advance past an element without reading its payload."""
        if element.data_size is not None:
            self._stream.seek(element.data_offset + element.data_size)
            return
        logger.debug("Walking unknown-size element 0x%X at offset %d", element.element_id, element.header_offset)
        for child in self._iter_children(element, limit):
            self._skip(child, limit)

    @staticmethod
    def _end_of(element: ElementHeader, limit: int) -> int:
        if element.data_size is None:
            return limit
        return element.data_offset + element.data_size

    def _read_element_header(self, limit: int) -> Optional[ElementHeader]:
        """
        Read an element ID and size at the current position.

        Returns:
            The header, or None when the position is already at limit

        Raises:
            MalformedContainerError: If the header is truncated or the
                declared size runs past limit
        """
        header_offset = self._stream.tell()
        if header_offset >= limit:
            return None

        element_id, _ = self._read_vint(limit, 4, "element ID")
        raw_size, size_length = self._read_vint(limit, 8, "element size")
        data_offset = self._stream.tell()

        marker = 1 << (7 * size_length)
        size = raw_size ^ marker
        if size == marker - 1:
            return ElementHeader(element_id, header_offset, data_offset, None)

        if data_offset + size > limit:
            raise MalformedContainerError(
                f"element 0x{element_id:X} at offset {header_offset} declares {size} bytes "
                f"but only {limit - data_offset} remain"
            )
        return ElementHeader(element_id, header_offset, data_offset, size)

    def _read_vint(self, limit: int, max_length: int, what: str) -> Tuple[int, int]:
        """
        Read an EBML variable-length integer with its marker bit intact.

        The count of leading zero bits in the first byte gives the number
        of bytes that follow.

        Returns:
            Tuple of (raw value, length in bytes)
        """
        offset = self._stream.tell()
        first = self._read_exact(1, limit, what)[0]
        length = 9 - first.bit_length()
        if first == 0 or length > max_length:
            raise MalformedContainerError(f"invalid {what} at offset {offset}")
        rest = self._read_exact(length - 1, limit, what)
        return int.from_bytes(bytes([first]) + rest, 'big'), length

    def _read_exact(self, count: int, limit: int, what: str) -> bytes:
        offset = self._stream.tell()
        if offset + count > limit:
            raise MalformedContainerError(f"truncated {what} at offset {offset}")
        data = self._stream.read(count)
        if len(data) != count:
            raise MalformedContainerError(f"truncated {what} at offset {offset}")
        return data
