#!/usr/bin/env python3
"""Copy stdin to stdout while drawing a progress bar on stderr.

Usage:
    find . -name '*.json' | pipeprogress "Scanning" --show-item | xargs ...
    seq 1000 | pipeprogress "Counting" --expected-count 1000 > out.txt
"""

import argparse
import logging
import sys
from dataclasses import replace
from datetime import timedelta

from pipeprogress.engine.engine import ProgressEngine
from pipeprogress.pipeline.pipeline import track_progress
from pipeprogress.pipeline.session import ProgressSession
from pipeprogress.shared.colors import Colors
from pipeprogress.shared.config import is_seconds, load_config, load_progress_settings
from pipeprogress.shared.logging_config import setup_logging
from pipeprogress.shared.progress import ProgressBar

logger = logging.getLogger(__name__)


def seconds(text):
    """argparse type for a finite duration in seconds."""
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: {text!r}")
    if not is_seconds(value):
        raise argparse.ArgumentTypeError(f"seconds out of range: {text!r}")
    return value


def build_parser():
    parser = argparse.ArgumentParser(
        prog='pipeprogress',
        description='Pass lines from stdin to stdout and show progress on stderr.')
    parser.add_argument('activity',
                        help='Text describing the activity')
    parser.add_argument('--expected-count', '-n', type=int, default=None,
                        help='Number of lines expected (default: count stdin first)')
    parser.add_argument('--id', type=int, default=None, dest='activity_id',
                        help='Progress bar id (default: derived from the activity)')
    parser.add_argument('--parent-id', type=int, default=None,
                        help='Id of the parent progress bar')
    parser.add_argument('--refresh-interval', type=seconds, default=None, metavar='SECONDS',
                        help='Minimum time between updates (0 disables)')
    parser.add_argument('--display-threshold', type=seconds, default=None, metavar='SECONDS',
                        help='Time before the first update is shown (0 disables)')
    parser.add_argument('--minimum-time-left', type=seconds, default=None, metavar='SECONDS',
                        help='Hide updates when less time than this remains (0 disables)')
    parser.add_argument('--show-item', action='store_true',
                        help='Show the current line as the current operation')
    parser.add_argument('--config', default=None,
                        help='Config file (default: ~/.pipeprogress/config.yaml)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show debug output')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Show only warnings and errors')
    return parser


def settings_from_args(args, config):
    """Config file settings with command-line overrides applied."""
    settings = load_progress_settings(config)
    overrides = {}
    if args.refresh_interval is not None:
        overrides['refresh_interval'] = timedelta(seconds=args.refresh_interval)
    if args.display_threshold is not None:
        overrides['display_threshold'] = timedelta(seconds=args.display_threshold)
    if args.minimum_time_left is not None:
        overrides['minimum_time_left_to_display'] = timedelta(seconds=args.minimum_time_left)
    return replace(settings, **overrides)


def _current_line(line):
    return line.rstrip("\r\n")


def main(argv=None, stdin=None, stdout=None):
    args = build_parser().parse_args(argv)
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    config = load_config(required=args.config is not None, fallback={}, path=args.config)
    Colors.auto()
    setup_logging('pipeprogress', verbose=args.verbose, quiet=args.quiet, config=config)

    if args.expected_count is not None and args.expected_count < 0:
        logger.error("--expected-count must not be negative: %d", args.expected_count)
        return 1

    settings = settings_from_args(args, config)
    logger.debug("Progress settings: %s", settings)

    session = ProgressSession(
        args.activity,
        activity_id=args.activity_id,
        parent_id=args.parent_id,
        current_operation=_current_line if args.show_item else None,
        engine=ProgressEngine.from_settings(settings),
        writer=ProgressBar(),
    )

    for line in track_progress(stdin, session, expected_count=args.expected_count):
        stdout.write(line)
    stdout.flush()

    logger.debug("Processed %d lines", session.engine.processed_count)
    return 0


if __name__ == '__main__':
    sys.exit(main() or 0)
