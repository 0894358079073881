"""Exceptions raised by transactional marketplace operations.

Recently-viewed tracking never raises these; it degrades to empty results.
"""


class MarketplaceError(Exception):
    """Base class for errors surfaced to the HTTP layer."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(MarketplaceError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFound(MarketplaceError):
    status_code = 404


class PermissionDenied(MarketplaceError):
    status_code = 403


class InvalidTransition(MarketplaceError):
    """Requested lease status change is not allowed from the current status."""

    status_code = 409


class InvalidInput(MarketplaceError):
    """Request values are inconsistent, independent of any stored state."""

    status_code = 400
