# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Exception classes for vidstamp

This module defines the errors raised while reading container timestamps
and renaming files. Every error is scoped to a single input file.

Copyright 2025 DNAi inc.
"""


class VidstampError(Exception):
    """
    Base exception for all vidstamp errors.

    All vidstamp exceptions inherit from this class, allowing
    catch-all error handling for any per-file failure.
    """
    def __init__(self, message: str = ""):
        """
        Initialize the exception with an optional error message.

        Args:
            message: Descriptive error message explaining what went wrong
        """
        self.message = message
        super().__init__(message)


class UnsupportedFormatError(VidstampError):
    """
    Raised when the file extension is not one of the supported containers.

    No bytes of the file are read before this is raised.
    """
    pass


class MalformedContainerError(VidstampError):
    """
    Raised when the container structure is inconsistent.

    This exception is raised when:
    - The file does not start with the expected header
    - An element or box header is truncated
    - A declared element or box size runs past its parent or the file end
    - A field has a version or width the reader does not understand
    """
    pass


class TimestampNotFoundError(VidstampError):
    """
    Raised when the container parses but carries no creation time.

    This exception is raised when:
    - Matroska Segment, Info or DateUTC is missing
    - ISO-BMFF moov or mvhd is missing
    - The creation time field is present but unset (zero)
    """
    pass


class InvalidTimestampError(VidstampError):
    """Raised when an offset-adjusted timestamp falls before 1970-01-01."""
    pass


class RenameError(VidstampError):
    """
    Raised when the filesystem rename fails.

    This exception is raised when:
    - The destination name already exists
    - Permissions prevent the rename
    - The source disappeared during the run
    """
    pass


class ConfigError(VidstampError):
    """Raised when a config file or environment setting cannot be used."""
    pass
