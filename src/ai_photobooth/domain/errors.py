"""Error taxonomy for the kiosk."""

from dataclasses import dataclass


class KioskError(Exception):
    """Base class for all kiosk errors."""


class HardwareUnavailable(KioskError):
    """The camera could not be opened or stopped delivering frames."""


class GenerationError(KioskError):
    """Base class for generative service failures."""


class ServiceUnreachable(GenerationError):
    """The generative service could not be reached or failed."""


class MissingCredential(GenerationError):
    """The generative service credential is missing or rejected."""


class NoImageReturned(GenerationError):
    """The generative service answered without any image data."""


class StoreError(KioskError):
    """Base class for remote store failures."""


class Unauthorized(StoreError):
    """The remote store rejected the admin PIN."""


class StoreUnreachable(StoreError):
    """The remote store could not be reached or returned garbage."""


class InvalidTransition(KioskError):
    """The requested action is not valid in the current state."""


class ConceptNotFound(KioskError):
    """The selected concept is not in the active concept list."""


class NotAuthenticated(KioskError):
    """An admin action was attempted without a valid PIN."""


@dataclass(frozen=True)
class ErrorReport:
    """User-visible description of a recovered error."""

    kind: str
    message: str

    @classmethod
    def from_exception(cls, exc: KioskError) -> "ErrorReport":
        """Build a report whose kind is the exception class name."""
        return cls(kind=type(exc).__name__, message=str(exc))
