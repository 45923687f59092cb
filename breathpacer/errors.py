from typing import Any, Optional


class BreathPacerError(Exception):
    """Base class for every error raised by the pacer."""
    pass


class RegimeValidationError(BreathPacerError):
    """A regime (or instruction) violates the rate/duration constraints."""

    def __init__(self, message: str, regime: Any = None, index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.regime = regime
        self.index = index


class PlaybackStateError(BreathPacerError):
    """A playback operation was called in a state that cannot serve it."""
    pass


class InstructionParseError(BreathPacerError):
    """Regime or instruction text could not be parsed."""
    pass
