"""Exception types shared by services and routes."""


class ApiError(Exception):
    """Expected failure that maps straight onto an HTTP response."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class DriveError(Exception):
    """A Drive write, upload or folder lookup failed."""


class SessionFileError(DriveError):
    """A session file could not be fetched, parsed or rewritten during an append."""


class GeminiError(Exception):
    """The generative-text call failed or timed out."""


class IdentityError(Exception):
    """An identity token could not be verified or a user could not be created."""
