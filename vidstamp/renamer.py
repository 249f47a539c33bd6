# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Timestamp renamer

Reads the creation time of each video, applies the timezone offset and
renames the file to "<epoch> <original name>" in the same directory, so
that a directory listing sorts chronologically.

Rounding: the container timestamp is floored to whole seconds and the
offset is rounded to the nearest second, halves away from zero (+0.5 s
becomes +1 s, -0.5 s becomes -1 s), before the two are added, so the
offset shifts the result by exactly that amount.

Copyright 2025 DNAi inc.
"""

import logging
import math
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, TextIO, Union

from vidstamp.exceptions import (
    ConfigError,
    InvalidTimestampError,
    RenameError,
    VidstampError,
)
from vidstamp.format_detector import FormatDetector

logger = logging.getLogger(__name__)

# Offsets are held as a signed 32-bit count of seconds
MAX_OFFSET_SECONDS = 2 ** 31 - 1

# 9999-12-31T23:59:59Z, the last second datetime can represent
MAX_EPOCH = 253402300799


class RenameResult(Enum):
    """What executing a RenamePlan did."""
    RENAMED = 'renamed'
    DRY_RUN = 'dry-run'
    UNCHANGED = 'unchanged'


@dataclass(frozen=True)
class RenamePlan:
    """Source path and the timestamp-prefixed path it should move to."""
    source: Path
    destination: Path
    epoch: int


def read_creation_time(file_path: Union[str, Path]) -> float:
    """
    Read the creation time of a video file.

    Args:
        file_path: Path to an MKV, MOV, M4V or MP4 file

    Returns:
        UNIX seconds (UTC) before any timezone offset

    Raises:
        UnsupportedFormatError: If the extension is not recognized
        MalformedContainerError: If the container structure is inconsistent
        TimestampNotFoundError: If no creation time is recorded
        VidstampError: If the file cannot be opened
    """
    parser = FormatDetector.parser_for(file_path)
    try:
        return parser.read_creation_time()
    except OSError as e:
        raise VidstampError(f"cannot read file: {e}")


def offset_seconds(hours: float) -> int:
    """
    Convert a timezone offset in hours to whole seconds.

    Raises:
        ConfigError: If the offset is not finite or does not fit in 32 bits
    """
    if not math.isfinite(hours):
        raise ConfigError(f"invalid timezone offset {hours!r}")
    scaled = hours * 3600
    seconds = int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))
    if abs(seconds) > MAX_OFFSET_SECONDS:
        raise ConfigError("offset too big")
    return seconds


def to_epoch(raw_timestamp: float, offset: int = 0) -> int:
    """
    Combine a container timestamp and an offset into the filename epoch.

    Args:
        raw_timestamp: UNIX seconds read from the container
        offset: Offset in whole seconds

    Raises:
        InvalidTimestampError: If the result is before 1970-01-01 or
            after 9999-12-31T23:59:59Z
    """
    epoch = math.floor(raw_timestamp) + offset
    if epoch < 0:
        raise InvalidTimestampError(f"timestamp {epoch} is before 1970-01-01")
    if epoch > MAX_EPOCH:
        raise InvalidTimestampError(f"timestamp {epoch} is after 9999-12-31")
    return epoch


def new_name(name: str, epoch: int) -> str:
    """
    Prefix a file name with its epoch.

    A name that already carries this exact prefix is returned unchanged,
    so renaming twice never stacks prefixes.
    """
    prefix = f"{epoch} "
    if name.startswith(prefix):
        return name
    return prefix + name


def plan_rename(file_path: Union[str, Path], epoch: int) -> RenamePlan:
    path = Path(file_path)
    return RenamePlan(path, path.with_name(new_name(path.name, epoch)), epoch)


def execute_plan(plan: RenamePlan, dry_run: bool = False) -> RenameResult:
    """
    Carry out a rename plan.

    Args:
        plan: Plan to execute
        dry_run: If True, nothing on disk is touched

    Returns:
        What was done

    Raises:
        RenameError: If the destination exists or the rename fails
    """
    if plan.source == plan.destination:
        return RenameResult.UNCHANGED

    # os.rename silently replaces an existing file on POSIX
    if os.path.lexists(plan.destination):
        raise RenameError(f"unable to rename to {plan.destination}: destination already exists")
    if dry_run:
        return RenameResult.DRY_RUN
    try:
        plan.source.rename(plan.destination)
    except OSError as e:
        raise RenameError(f"unable to rename to {plan.destination}: {e}")
    return RenameResult.RENAMED


def format_epoch(epoch: int) -> str:
    """Format an epoch as an RFC 2822 date for reports."""
    return format_datetime(datetime.fromtimestamp(epoch, tz=timezone.utc))


class TimestampRenamer:
    """
    Renames a batch of videos after their creation time.

    Each file is handled independently: a failure is reported and the
    batch continues with the next file.

    Example:
        >>> renamer = TimestampRenamer(dry_run=True, tz_offset=-5)
        >>> ok = renamer.process_files(['IMG_4792.mov'])
    """

    def __init__(
        self,
        dry_run: bool = False,
        tz_offset: float = 0.0,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ):
        """
        Initialize the renamer.

        Args:
            dry_run: Report what would be renamed without renaming
            tz_offset: Hours added to every container timestamp
            out: Stream for report lines, sys.stdout when omitted
            err: Stream for per-file errors, sys.stderr when omitted

        Raises:
            ConfigError: If tz_offset is unusable
        """
        self.dry_run = dry_run
        self.offset = offset_seconds(tz_offset)
        self._out = out
        self._err = err

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err if self._err is not None else sys.stderr

    def process_file(self, file_path: Union[str, Path]) -> RenamePlan:
        """
        Read, plan and rename one file.

        Returns:
            The executed (or, in dry-run mode, reported) plan

        Raises:
            VidstampError: On any per-file failure
        """
        raw_timestamp = read_creation_time(file_path)
        epoch = to_epoch(raw_timestamp, self.offset)
        plan = plan_rename(file_path, epoch)
        logger.debug("%s: container time %s, epoch %d", file_path, raw_timestamp, epoch)

        result = execute_plan(plan, self.dry_run)
        if result is RenameResult.UNCHANGED:
            print(f"{plan.source} already named", file=self.out)
        elif result is RenameResult.DRY_RUN:
            print(f"would rename: {plan.source} -> {plan.destination}", file=self.out)
        else:
            print(f"{plan.source} -> {plan.destination} ({format_epoch(epoch)})", file=self.out)
        logger.info("%s: %s", plan.source, result.value)
        return plan

    def process_files(self, file_paths: Iterable[Union[str, Path]]) -> bool:
        """
        Process every file in order.

        Returns:
            True if every file succeeded
        """
        ok = True
        for file_path in file_paths:
            try:
                self.process_file(file_path)
            except VidstampError as e:
                print(f"Error processing {file_path}: {e}", file=self.err)
                logger.debug("%s failed with %s", file_path, type(e).__name__)
                ok = False
        return ok
