# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
File format detector

Maps a file extension to the container reader that understands it.
Detection is by extension only; no bytes are read.

Copyright 2025 DNAi inc.
"""

from pathlib import Path
from typing import Dict, Type, Union

from vidstamp.bmff_parser import QuickTimeParser
from vidstamp.ebml_parser import MatroskaParser
from vidstamp.exceptions import UnsupportedFormatError


class FormatDetector:
    """Selects a creation time reader from a file's extension."""

    # Extension to format mapping
    EXTENSION_FORMATS: Dict[str, str] = {
        '.mkv': 'MKV',
        '.mov': 'MOV',
        '.m4v': 'M4V',
        '.mp4': 'MP4',
    }

    FORMAT_PARSERS: Dict[str, Type] = {
        'MKV': MatroskaParser,
        'MOV': QuickTimeParser,
        'M4V': QuickTimeParser,
        'MP4': QuickTimeParser,
    }

    @classmethod
    def detect_format(cls, file_path: Union[str, Path]) -> str:
        """
        Detect container format from the file extension.

        Args:
            file_path: Path to file

        Returns:
            Format name

        Raises:
            UnsupportedFormatError: If the extension is not recognized
        """
        ext = Path(file_path).suffix.lower()
        if ext not in cls.EXTENSION_FORMATS:
            raise UnsupportedFormatError(f"unknown file type {ext or '(no extension)'!r}")
        return cls.EXTENSION_FORMATS[ext]

    @classmethod
    def parser_for(cls, file_path: Union[str, Path]):
        """Return a reader instance for file_path."""
        return cls.FORMAT_PARSERS[cls.detect_format(file_path)](file_path=file_path)
