"""Typed errors raised by the yield optimization engine."""


class CCYOEError(Exception):
    """Base class for engine errors."""


class InvalidConfig(CCYOEError, ValueError):
    """Raised when an allocation config fails validation at construction."""


class ConfigMismatch(CCYOEError, KeyError):
    """Raised when a snapshot references an asset with no configured target."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class UnorderedInput(CCYOEError, ValueError):
    """Raised when snapshot timestamps are not strictly increasing."""


class MalformedSnapshot(CCYOEError, ValueError):
    """Raised when a snapshot is missing an asset or carries a bad yield."""
