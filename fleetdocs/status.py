"""Status enum for document expiration urgency."""

from enum import Enum


class Status(Enum):
    """Expiration urgency tiers. Lower value = more urgent."""

    RED = 1  # Expired or expiring within 15 days
    YELLOW = 2  # Expiring within 30 days
    GREEN = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()
