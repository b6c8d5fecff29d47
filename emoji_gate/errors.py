"""Error types raised by the approval gate."""


class GateError(Exception):
    """Base class for every failure that aborts the gate decision."""


class InvalidPatternError(GateError):
    """Raised when a CODEOWNERS path pattern is not a valid glob."""

    def __init__(self, pattern: str, reason: str = "malformed glob"):
        self.pattern = pattern
        super().__init__(f"invalid pattern '{pattern}' in CODEOWNERS: {reason}")


class CodeownersReadError(GateError):
    """Raised when the CODEOWNERS stream cannot be read."""


class NotFoundError(GateError):
    """Raised when a project or file does not exist on the platform."""


class DecodeError(GateError):
    """Raised when file content cannot be decoded from its transport encoding."""


class NoCommitsError(GateError):
    """Raised when a merge request has no commits to take a timestamp from."""


class ApiResponseError(GateError):
    """Raised when the platform answers with a payload we cannot interpret."""


class GateFetchError(GateError):
    """Wraps a collaborator failure with the operation that was being performed."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"failed to fetch {operation}: {cause}")
