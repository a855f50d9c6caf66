"""Exception types surfaced to the UI layer."""


class StuBroError(Exception):
    """Base class for errors shown to the student as a message."""


class AIServiceError(StuBroError):
    """The model call failed, timed out, or returned an unusable payload."""


class ExtractionError(StuBroError):
    """Source material could not be turned into text."""


class InvalidTransition(StuBroError):
    """A session status change that the search state machine does not allow."""


class AuthError(StuBroError):
    """Sign-up or sign-in was rejected."""


class TokensExhausted(StuBroError):
    """The user has no AI tokens left for the requested action."""
