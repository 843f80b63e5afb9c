"""Test helpers shared across test packages."""

import re
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

TEST_SECRET = "test-signing-secret-0123456789abcdef"

_CODE_PATTERN = re.compile(r"code is (\d+)")


class FakeClock:
    """Manually advanced clock usable as both epoch-seconds and datetime source."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(timezone.utc).replace(microsecond=0)

    def time(self) -> float:
        return self.now.timestamp()

    def datetime(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def extract_code(message: str) -> str:
    """Pull the verification code out of a notification message."""
    match = _CODE_PATTERN.search(message)
    assert match is not None, f"No code in message: {message!r}"
    return match.group(1)


def last_sent_code(notifier: Mock) -> str:
    """Code from the most recent notifier.send(identity_key, message) call."""
    return extract_code(notifier.send.call_args[0][1])
