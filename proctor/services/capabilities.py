"""
Host Capabilities
Clock and exclusive-display interfaces the session engine depends on
"""
import time

from proctor.utils import now_utc


class SystemClock:
    """Monotonic deadline clock plus wall-clock timestamps"""

    def monotonic(self):
        return time.monotonic()

    def now(self):
        return now_utc()


class DisplayMode:
    """
    Exclusive full-screen presentation for a session.

    Both operations are best-effort; the engine logs and ignores failures.
    """

    def request(self, session):
        raise NotImplementedError

    def release(self, session):
        raise NotImplementedError


class NullDisplayMode(DisplayMode):
    def request(self, session):
        return None

    def release(self, session):
        return None
