"""Terminal rendering for progress records."""

import re
import sys
from datetime import timedelta

from pipeprogress.shared.colors import Colors

ANSI_ESCAPE = re.compile(r"\033\[[0-9;]*m")


def visible_length(text):
    """Length of text as shown on a terminal, ignoring color codes."""
    return len(ANSI_ESCAPE.sub("", text))


def format_seconds(seconds):
    """Format whole seconds as h:mm:ss."""
    return str(timedelta(seconds=max(int(seconds), 0)))


class ProgressBar:
    """Draws progress records on a single stderr line.

    Renders on TTY stderr. Silent on non-TTY. Instances are callable so one
    can be handed to a ProgressSession as its writer.

    Usage:
        bar = ProgressBar()
        session = ProgressSession("Copying", writer=bar)
        for item in track_progress(items, session):
            copy(item)
    """

    MAX_OPERATION = 30

    def __init__(self, width=40):
        self.width = width
        self.is_tty = sys.stderr.isatty()
        self.active = False
        self._last_length = 0

    def __call__(self, record):
        if record.completed:
            self.finish()
        else:
            self.update(record)

    def render(self, record):
        """Build the text line for a record, without control characters."""
        parts = [f"{Colors.CYAN}{record.activity}{Colors.NC}"]
        if record.percent_complete is not None:
            filled = int(self.width * min(max(record.percent_complete, 0), 100) / 100)
            parts.append("[" + "█" * filled + "░" * (self.width - filled) + "]")
        if record.status:
            parts.append(record.status)
        if record.seconds_remaining is not None:
            parts.append(f"{Colors.DIM}ETA {format_seconds(record.seconds_remaining)}{Colors.NC}")
        operation = record.current_operation
        if operation:
            # Truncate long operations to fit terminal
            if len(operation) > self.MAX_OPERATION:
                operation = operation[:self.MAX_OPERATION - 3] + "..."
            parts.append(operation)
        return " ".join(parts)

    def update(self, record):
        """Redraw the line for a record."""
        if not self.is_tty:
            return
        line = self.render(record)
        length = visible_length(line)
        padding = " " * max(self._last_length - length, 0)
        sys.stderr.write(f"\r{line}{padding}")
        sys.stderr.flush()
        self._last_length = length
        self.active = True

    def finish(self):
        """End the progress line, if one was drawn."""
        if self.is_tty and self.active:
            sys.stderr.write("\n")
            sys.stderr.flush()
        self.active = False
        self._last_length = 0
