# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Run options for vidstamp

Options are resolved from, lowest precedence first:
- built-in defaults
- the VIDSTAMP_TZ_OFFSET environment variable
- a config file of simple "key = value" lines
- command-line flags (applied by the CLI)

Copyright 2025 DNAi inc.
"""

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from vidstamp.exceptions import ConfigError

ENV_TZ_OFFSET = 'VIDSTAMP_TZ_OFFSET'

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off'}


@dataclass
class RenameOptions:
    """Options shared by every file in one run."""

    dry_run: bool = False
    # Hours added to every container timestamp; may be fractional
    tz_offset: float = 0.0


def parse_offset(value: str) -> float:
    """
    Parse a timezone offset in hours.

    Raises:
        ConfigError: If the value is not a finite number
    """
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"invalid timezone offset {value!r}")
    if not math.isfinite(hours):
        raise ConfigError(f"invalid timezone offset {value!r}")
    return hours


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ConfigError(f"invalid boolean {value!r}")


def read_config_file(config_file: Union[str, Path]) -> Dict[str, str]:
    """
    Read a config file.

    Blank lines and lines starting with '#' are ignored; every other line
    must be "key = value".

    Args:
        config_file: Path to the config file

    Returns:
        Dictionary of raw key/value strings

    Raises:
        ConfigError: If the file cannot be read or a line is malformed
    """
    path = Path(config_file)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            lines = f.readlines()
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}")

    config_options = {}
    for line_number, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        if '=' not in line:
            raise ConfigError(f"{path}:{line_number}: expected 'key = value'")
        key, value = line.split('=', 1)
        config_options[key.strip()] = value.strip()
    return config_options


def load_options(
    config_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RenameOptions:
    """
    Build options from the environment and an optional config file.

    Args:
        config_file: Optional path to a config file
        environ: Environment mapping, os.environ when omitted

    Returns:
        Resolved options before command-line overrides
    """
    if environ is None:
        environ = os.environ
    options = RenameOptions()

    env_offset = environ.get(ENV_TZ_OFFSET)
    if env_offset:
        options.tz_offset = parse_offset(env_offset)

    if config_file is not None:
        for key, value in read_config_file(config_file).items():
            if key == 'dry_run':
                options.dry_run = parse_bool(value)
            elif key == 'tz_offset':
                options.tz_offset = parse_offset(value)
            else:
                raise ConfigError(f"unknown config key {key!r} in {config_file}")

    return options
