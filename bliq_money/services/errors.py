"""
Collaborator Exceptions

Failures of storage, auth and the advice generator. None of them ever
corrupts the in-memory ledger; the UI shows them as messages.
"""


class ExternalCollaboratorError(Exception):
    """Base exception for failures of an external collaborator."""

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or message
