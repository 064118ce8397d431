"""Exception hierarchy for landing generation."""


class LandingForgeError(Exception):
    """Base error for the package."""


class GenerationError(LandingForgeError):
    """A fatal pipeline phase failed."""


class InsufficientAssetsError(GenerationError):
    """Too few assets were generated to build a usable landing."""


class SessionError(LandingForgeError):
    """Invalid use of a generation session."""


class SessionClosedError(SessionError):
    """The session already reached a terminal state."""


class InvalidStateTransitionError(SessionError):
    """The requested state would move the session backwards."""


class SessionLimitError(SessionError):
    """The owner holds too many unfinished sessions."""


class AssemblyError(LandingForgeError):
    """Writing the landing to storage failed."""


class AssemblyValidationError(AssemblyError):
    """Assembly input was rejected before touching the filesystem."""


class AssemblyInProgressError(AssemblyError):
    """Another assembly for the same landing is still running."""
