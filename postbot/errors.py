"""Error taxonomy shared by the tool server and the dispatcher.

Every error carries a human-readable message and the HTTP status the server
boundary answers with. Endpoints turn them into ``{"error": message}``.
"""
from typing import List, Optional, Tuple


class PostbotError(Exception):
    """Base class for all expected failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PostbotError):
    """Tool arguments are missing, mistyped or unexpected.

    ``errors`` holds ``(field, expected)`` pairs, e.g. ``("a", "number")``.
    """

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Tuple[str, str]]] = None):
        self.errors = list(errors or [])
        super().__init__(message)

    @property
    def fields(self) -> List[str]:
        return [name for name, _ in self.errors]


class NotFoundError(PostbotError):
    """Unknown tool name or session id."""

    status_code = 404


class ToolExecutionError(PostbotError):
    """A tool handler failed after its arguments were accepted."""

    status_code = 500


class ExternalAPIError(PostbotError):
    """A collaborator (Gemini, X) failed or could not be reached."""

    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class FormatError(PostbotError):
    """The dispatcher could not extract usable arguments from free text."""

    status_code = 400
