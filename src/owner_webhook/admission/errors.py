"""
owner_webhook.admission.errors

Engine-level exceptions.

Responsibilities:
- Separate request-handling failures from policy denials (which are verdicts).
"""

from __future__ import annotations


class EngineError(Exception):
    """
    A single request could not be decided.
    The transport answers it as an error review, never as allowed or denied by policy.
    """

    status_code: int = 500
    reason: str = "InternalError"


class MalformedInputError(EngineError):
    # Payload or object metadata does not have the expected shape.
    status_code = 400
    reason = "BadRequest"


class CollaboratorError(EngineError):
    # Label lookup failed; the underlying error is chained as __cause__.
    status_code = 500
    reason = "InternalError"


# --- Module Notes -----------------------------------------------------------
# All of these are local to one request. Process-fatal errors are configuration
# errors raised by `owner_webhook.settings` before the server starts.
