"""
Exceptions raised by the fluency engine.

Every error derives from FluencyError so callers can catch the whole family,
while the stdlib bases (ValueError, LookupError) keep them catchable by
generic handlers too.
"""

from __future__ import annotations


class FluencyError(Exception):
    """Base class for all engine errors."""


class InvalidInput(FluencyError, ValueError):
    """Malformed arguments passed to a public operation (caller bug)."""


class EmptyPool(FluencyError, LookupError):
    """select_next() was called with no enabled items."""


class InvalidConfig(FluencyError, ValueError):
    """A configuration object failed validation."""


class InsufficientSamples(FluencyError):
    """
    The calibration run produced too few usable samples.

    Recoverable: the caller may collect more samples or keep running on the
    unscaled default configuration.
    """

    def __init__(self, required: int, received: int):
        self.required = required
        self.received = received
        super().__init__(
            f"Need at least {required} samples after warm-up, got {received}"
        )


class StorageError(FluencyError):
    """A persisted document or record could not be read back."""
