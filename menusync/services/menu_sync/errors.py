"""
Error taxonomy for the menu sync engine.

Services raise these; the API layer maps them onto HTTP status codes.
Partial failures (one key of a batch, one item's modifier fetch) are never
raised, they are returned alongside the successful results.
"""


class MenuSyncError(Exception):
    """base class for every engine error."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MenuSyncError):
    """bad input, engine state unchanged."""
    status_code = 400


class NotFoundError(MenuSyncError):
    status_code = 404


class InvariantViolation(MenuSyncError):
    """structural invariant broken (e.g. reorder with a mismatched id set), nothing applied."""
    status_code = 409


class SaveInProgressError(MenuSyncError):
    """a commit for the same editing session is already running."""
    status_code = 409


class RemotePlatformError(MenuSyncError):
    """the delivery platform adapter could not be reached or rejected the whole call."""
    status_code = 502


class CatalogUnavailableError(MenuSyncError):
    """the POS catalog could not be reached or answered with something unusable."""
    status_code = 503
