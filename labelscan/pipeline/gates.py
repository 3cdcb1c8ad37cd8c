"""
==============================================================================
Acceptance Gates Module
==============================================================================

Cheap counters evaluated before pattern extraction.

Gates:
------
- StabilityGate: requires N identical sanitized reads in a row
- CooldownGate: minimum time between two accepted results

==============================================================================
"""

from __future__ import annotations

from typing import Optional


DEFAULT_REQUIRED_STABLE_READS = 2
DEFAULT_COOLDOWN_MS = 900


class StabilityGate:
    """
    Suppresses single-frame misreads.

    Every observed text either extends the current run of identical reads
    or starts a new run of length 1.

    Example:
        >>> gate = StabilityGate(required_reads=2)
        >>> gate.observe("ABC")
        False
        >>> gate.observe("ABC")
        True
    """

    def __init__(self, required_reads: int = DEFAULT_REQUIRED_STABLE_READS) -> None:
        if required_reads < 1:
            raise ValueError("required_reads must be at least 1")

        self._required_reads = required_reads
        self._last_sanitized: Optional[str] = None
        self._consecutive_count = 0

    @property
    def required_reads(self) -> int:
        return self._required_reads

    @property
    def last_sanitized(self) -> Optional[str]:
        return self._last_sanitized

    @property
    def consecutive_count(self) -> int:
        return self._consecutive_count

    def observe(self, text: str) -> bool:
        """
        Record one sanitized read.

        Args:
            text: Sanitized text of the current event

        Returns:
            True if the run of identical reads is long enough
        """
        if text == self._last_sanitized:
            self._consecutive_count += 1
        else:
            self._last_sanitized = text
            self._consecutive_count = 1

        return self._consecutive_count >= self._required_reads

    def reset(self) -> None:
        self._last_sanitized = None
        self._consecutive_count = 0


class CooldownGate:
    """
    Rate-limits acceptances of the same physical label.

    Times are monotonic milliseconds supplied by the caller.
    """

    def __init__(self, cooldown_ms: float = DEFAULT_COOLDOWN_MS) -> None:
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms cannot be negative")

        self._cooldown_ms = cooldown_ms
        self._last_accepted_at: Optional[float] = None

    @property
    def cooldown_ms(self) -> float:
        return self._cooldown_ms

    @property
    def last_accepted_at(self) -> Optional[float]:
        return self._last_accepted_at

    def is_open(self, now_ms: float) -> bool:
        """Check if an event at now_ms may proceed to extraction."""
        if self._last_accepted_at is None:
            return True

        return now_ms - self._last_accepted_at >= self._cooldown_ms

    def mark_accepted(self, now_ms: float) -> None:
        """Start a new cooldown window."""
        self._last_accepted_at = now_ms

    def remaining_ms(self, now_ms: float) -> float:
        """Milliseconds left in the current window (0 when open)."""
        if self._last_accepted_at is None:
            return 0.0

        return max(0.0, self._cooldown_ms - (now_ms - self._last_accepted_at))

    def reset(self) -> None:
        self._last_accepted_at = None
