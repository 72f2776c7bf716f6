"""ANSI color codes for log prefixes and the progress bar."""

import sys


class Colors:
    """ANSI color codes for terminal output."""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    CYAN = '\033[0;36m'
    DIM = '\033[2m'
    NC = '\033[0m'  # No Color

    _CODES = ('RED', 'GREEN', 'YELLOW', 'CYAN', 'DIM', 'NC')

    @classmethod
    def disable(cls):
        """Blank out every code so output carries no escape sequences."""
        for name in cls._CODES:
            setattr(cls, name, '')

    @classmethod
    def auto(cls, stream=None):
        """Disable colors unless ``stream`` (default stderr) is a TTY.

        Progress and log lines both go to stderr, so that is the stream
        that decides.
        """
        stream = stream if stream is not None else sys.stderr
        if not stream.isatty():
            cls.disable()
