"""
FIT file decoder: turns a Garmin .fit binary into the message dicts the
feature pipeline consumes.

Only the message types we read are kept:
  record   → per-second samples (timestamp, heart_rate, speed, distance, ...)
  session  → activity summary (max_heart_rate)
  lap      → lap windows (start_time, timestamp)

Values are returned exactly as fitparse decodes them. Unit conversion and
validation happen in trackforge.fit.records.
"""
from pathlib import Path
from typing import Any, Dict, List

import fitparse

_MESSAGE_TYPES = ("record", "session", "lap")

DecodedMessages = Dict[str, List[Dict[str, Any]]]


class FitParseError(Exception):
    """Raised when a FIT file cannot be decoded."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


def decode_fit_file(path: Path) -> DecodedMessages:
    """
    Decode a .fit file into {message type: [field dict, ...]}.

    Args:
        path: Path to the .fit file

    Returns:
        Dict with "record", "session" and "lap" keys, each an ordered list
        of field dicts. Lists may be empty.

    Raises:
        FitParseError: if the file doesn't exist or isn't a valid FIT file
    """
    if not path.exists():
        raise FitParseError(str(path), "FIT file not found")

    try:
        fit = fitparse.FitFile(str(path))
        fit.parse()
        return {
            name: [message.get_values() for message in fit.get_messages(name)]
            for name in _MESSAGE_TYPES
        }
    except Exception as exc:
        raise FitParseError(str(path), f"failed to decode FIT file: {exc}") from exc
