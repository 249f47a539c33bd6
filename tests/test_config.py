"""Tests for option resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from vidstamp.config import (
    ENV_TZ_OFFSET,
    RenameOptions,
    load_options,
    parse_bool,
    parse_offset,
    read_config_file,
)
from vidstamp.exceptions import ConfigError


def test_defaults() -> None:
    assert load_options(environ={}) == RenameOptions(dry_run=False, tz_offset=0.0)


def test_environment_offset() -> None:
    assert load_options(environ={ENV_TZ_OFFSET: "-3.5"}).tz_offset == -3.5


def test_config_file_overrides_environment(tmp_path: Path) -> None:
    config = tmp_path / "vidstamp.conf"
    config.write_text("# camera in CET\ntz_offset = 1\n\ndry_run = yes\n")
    options = load_options(config, environ={ENV_TZ_OFFSET: "-3.5"})
    assert options == RenameOptions(dry_run=True, tz_offset=1.0)


def test_config_file_unknown_key(tmp_path: Path) -> None:
    config = tmp_path / "vidstamp.conf"
    config.write_text("timezone = 1\n")
    with pytest.raises(ConfigError, match="unknown config key"):
        load_options(config, environ={})


def test_config_file_line_without_equals(tmp_path: Path) -> None:
    config = tmp_path / "vidstamp.conf"
    config.write_text("dry_run\n")
    with pytest.raises(ConfigError, match=":1:"):
        read_config_file(config)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="cannot read"):
        read_config_file(tmp_path / "absent.conf")


@pytest.mark.parametrize("value", ["abc", "nan", "inf", ""])
def test_parse_offset_rejects(value: str) -> None:
    with pytest.raises(ConfigError):
        parse_offset(value)


@pytest.mark.parametrize("value,expected", [("1", True), ("On", True), ("no", False), ("0", False)])
def test_parse_bool(value: str, expected: bool) -> None:
    assert parse_bool(value) is expected


def test_parse_bool_rejects() -> None:
    with pytest.raises(ConfigError):
        parse_bool("maybe")
