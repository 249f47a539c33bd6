# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Command-line interface for vidstamp

Usage:
    vidstamp [-n] [-t HOURS] [-c FILE] [-v] PATH [PATH ...]

Exit status is 0 when every file was processed and 1 when any file
failed. Invalid invocations exit with status 2 before any file is read.

Copyright 2025 DNAi inc.
"""

import argparse
import logging
import sys
from typing import List, Optional

from vidstamp import __version__
from vidstamp.config import load_options, parse_offset
from vidstamp.exceptions import ConfigError
from vidstamp.renamer import TimestampRenamer

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'


def _offset_arg(value: str) -> float:
    try:
        return parse_offset(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(e.message)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='vidstamp',
        description="Prefix video file names with their creation time as a UNIX timestamp",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what would be renamed
  vidstamp -n *.mkv *.mov

  # Camera recorded local time in UTC-5
  vidstamp -t 5 clip.mp4

Environment:
  VIDSTAMP_TZ_OFFSET  default for --tz-offset
        """
    )
    parser.add_argument('paths', nargs='+', help='Files to process')
    parser.add_argument('-n', '--dry-run', action='store_true', default=None,
                        help="Don't rename files, just print what would be done")
    parser.add_argument('-t', '--tz-offset', type=_offset_arg, metavar='HOURS',
                        help='Offset in hours (can be fractional) to add to timestamps read from files. '
                             'Some cameras store the creation date in local time without a timezone.')
    parser.add_argument('-c', '--config', type=str, metavar='FILE',
                        help='Config file with "key = value" lines (dry_run, tz_offset)')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Verbose logging on stderr (-vv for debug)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = load_options(args.config)
        if args.dry_run is not None:
            options.dry_run = args.dry_run
        if args.tz_offset is not None:
            options.tz_offset = args.tz_offset
        renamer = TimestampRenamer(dry_run=options.dry_run, tz_offset=options.tz_offset)
    except ConfigError as e:
        parser.error(e.message)

    return 0 if renamer.process_files(args.paths) else 1


if __name__ == "__main__":
    sys.exit(main())
