"""Configuration loading and progress settings validation for pipeprogress."""

import logging
import math
import sys
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from pipeprogress.engine.engine import (
    DEFAULT_DISPLAY_THRESHOLD,
    DEFAULT_MINIMUM_TIME_LEFT_TO_DISPLAY,
    DEFAULT_REFRESH_INTERVAL,
)
from pipeprogress.engine.samples import DEFAULT_CAPACITY, MIN_CAPACITY

CONFIG_PATH = Path.home() / ".pipeprogress" / "config.yaml"

logger = logging.getLogger(__name__)

# Duration keys of the 'progress' section, in seconds
DURATION_KEYS = (
    'refresh_interval',
    'display_threshold',
    'minimum_time_left_to_display',
)

# timedelta overflows at this many seconds
MAX_SECONDS = timedelta.max.total_seconds()


@dataclass(frozen=True)
class ProgressSettings:
    """Engine tunables read from the 'progress' config section."""

    refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL
    display_threshold: timedelta = DEFAULT_DISPLAY_THRESHOLD
    minimum_time_left_to_display: timedelta = DEFAULT_MINIMUM_TIME_LEFT_TO_DISPLAY
    window_capacity: int = DEFAULT_CAPACITY


def load_config(
    required: bool = False,
    fallback: Optional[Dict[str, Any]] = None,
    path: Optional[Path] = None,
) -> Optional[Dict[str, Any]]:
    """Load ~/.pipeprogress/config.yaml (or ``path``).

    Args:
        required: If True, exit with error when config is missing or unreadable.
        fallback: Default dict to return when config is missing and not required.
        path: Alternate config file location.

    Returns:
        Parsed config dict, fallback dict, or None if missing/invalid.
    """
    config_path = Path(path) if path is not None else CONFIG_PATH

    if not config_path.exists():
        if required:
            logger.error("Config file not found at %s", config_path)
            sys.exit(1)
        return fallback

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.error("Error reading config: %s", e)
        if required:
            sys.exit(1)
        return fallback

    if not isinstance(data, dict):
        logger.error("Config file %s must contain a mapping, got %s",
                     config_path, type(data).__name__)
        if required:
            sys.exit(1)
        return fallback

    return data


def is_seconds(value) -> bool:
    """True for a finite number of seconds that fits in a timedelta."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return abs(value) < MAX_SECONDS and math.isfinite(value)


def validate_progress_settings(config: Optional[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Check the 'progress' section of a config dict.

    Durations are seconds and may be zero or negative (which turns the rule
    off), but must be finite and within the range of a timedelta. The window
    capacity must be an integer of at least 3.

    Args:
        config: Config dict, may be None.

    Returns:
        List of issue dicts with 'key', 'level' ('error'|'warning'), and
        'message' keys. Empty list means the section is valid.
    """
    issues: List[Dict[str, str]] = []

    if not config or config.get('progress') is None:
        return issues

    section = config['progress']
    if not isinstance(section, dict):
        issues.append({
            'key': 'progress',
            'level': 'error',
            'message': 'progress section must be a mapping',
        })
        return issues

    for key in DURATION_KEYS:
        if key in section and not is_seconds(section[key]):
            issues.append({
                'key': key,
                'level': 'error',
                'message': f"Expected a number of seconds, got {section[key]!r}",
            })

    if 'window_capacity' in section:
        capacity = section['window_capacity']
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < MIN_CAPACITY:
            issues.append({
                'key': 'window_capacity',
                'level': 'error',
                'message': f"Expected an integer of at least {MIN_CAPACITY}, got {capacity!r}",
            })

    known = set(DURATION_KEYS) | {'window_capacity'}
    for key in sorted(set(section) - known):
        issues.append({
            'key': key,
            'level': 'warning',
            'message': f"Unknown progress setting: {key}",
        })

    return issues


def load_progress_settings(config: Optional[Dict[str, Any]]) -> ProgressSettings:
    """Build ProgressSettings from a config dict.

    Invalid values are logged and replaced by their defaults.
    """
    issues = validate_progress_settings(config)
    for issue in issues:
        logger.warning("Config %s: %s", issue['key'], issue['message'])

    section = (config or {}).get('progress')
    if not isinstance(section, dict):
        return ProgressSettings()

    rejected = {issue['key'] for issue in issues if issue['level'] == 'error'}
    values: Dict[str, Any] = {}
    for key in DURATION_KEYS:
        if key in section and key not in rejected:
            values[key] = timedelta(seconds=section[key])
    if 'window_capacity' in section and 'window_capacity' not in rejected:
        values['window_capacity'] = section['window_capacity']

    return ProgressSettings(**values)
