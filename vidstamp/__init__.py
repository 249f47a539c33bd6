# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
vidstamp - Rename videos after their embedded creation time

Reads the creation time stored in Matroska (MKV) and QuickTime/MPEG-4
(MOV, MP4, M4V) containers and prefixes each file name with it as a UNIX
timestamp, so a directory of clips sorts chronologically.

All container parsing is done by directly reading binary file structures.

Copyright 2025 DNAi inc.
"""

__version__ = "0.1.0"
__author__ = "DNAi inc."

from vidstamp.bmff_parser import QuickTimeParser
from vidstamp.ebml_parser import MatroskaParser
from vidstamp.exceptions import (
    ConfigError,
    InvalidTimestampError,
    MalformedContainerError,
    RenameError,
    TimestampNotFoundError,
    UnsupportedFormatError,
    VidstampError,
)
from vidstamp.format_detector import FormatDetector
from vidstamp.renamer import (
    RenamePlan,
    RenameResult,
    TimestampRenamer,
    execute_plan,
    plan_rename,
    read_creation_time,
)

__all__ = [
    "QuickTimeParser",
    "MatroskaParser",
    "FormatDetector",
    "VidstampError",
    "UnsupportedFormatError",
    "MalformedContainerError",
    "TimestampNotFoundError",
    "InvalidTimestampError",
    "RenameError",
    "ConfigError",
    "RenamePlan",
    "RenameResult",
    "TimestampRenamer",
    "execute_plan",
    "plan_rename",
    "read_creation_time",
]
