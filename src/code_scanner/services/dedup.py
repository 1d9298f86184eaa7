"""Debounce for repeated detections of the same code."""

from dataclasses import dataclass
from datetime import datetime

DEFAULT_COOLDOWN_SECONDS = 2.0


@dataclass
class DeduplicationGate:
    """Single-slot debounce over the most recently admitted value.

    A detection is rejected only when it repeats the last admitted value
    within the cooldown. Any other value resets the slot, so A, B, A inside
    the cooldown admits all three.

    The gate is not thread-safe; one scan session owns it.
    """

    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    last_value: str | None = None
    last_admitted_at: datetime | None = None

    def admit(self, value: str, now: datetime) -> bool:
        """Return True and remember the value if it should be processed."""
        if (
            self.last_value == value
            and self.last_admitted_at is not None
            and (now - self.last_admitted_at).total_seconds() < self.cooldown_seconds
        ):
            return False
        self.last_value = value
        self.last_admitted_at = now
        return True

    def reset(self) -> None:
        """Forget the last admitted value."""
        self.last_value = None
        self.last_admitted_at = None
