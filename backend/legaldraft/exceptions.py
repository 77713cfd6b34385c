"""
Drafting Engine Exceptions

Every error the engine raises derives from DraftingError and carries the
HTTP status the API layer answers with.
"""

from typing import Optional


class DraftingError(Exception):
    """Base exception for all drafting engine errors."""
    status_code = 500


class ConfigurationError(DraftingError):
    """
    Raised when the engine is misconfigured.

    This includes broken template assets found at startup and a missing
    generative-service API key.
    """
    status_code = 500


class TemplateSyntaxError(DraftingError):
    """
    Raised when a template body is malformed.

    A half-rendered legal document is never emitted; the caller gets this
    instead, with the position of the offending tag.
    """
    status_code = 422

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class TemplateNotFoundError(DraftingError):
    status_code = 404

    def __init__(self, document_type: str, language: Optional[str] = None):
        self.document_type = document_type
        self.language = language
        if language:
            message = f"No '{language}' template for document type '{document_type}'"
        else:
            message = f"Unknown template '{document_type}'"
        super().__init__(message)


class ValidationError(DraftingError):
    """
    Raised when a request is rejected before any generative call is made.

    Contains the offending field when one can be named.
    """
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class SessionNotFoundError(DraftingError):
    status_code = 404

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' not found")


class SessionStateError(DraftingError):
    """Raised when an operation is not allowed in the session's current state."""
    status_code = 409


class EditInProgressError(SessionStateError):
    """Raised when an AI edit is submitted while another one is outstanding."""
    pass


class GenerationError(DraftingError):
    """
    Raised when the generative-text service fails.

    Wraps network errors, non-success responses and malformed bodies. The
    engine never retries; the user re-triggers the call.
    """
    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        self.upstream_status = status_code
        self.response_body = response_body
        super().__init__(message)
