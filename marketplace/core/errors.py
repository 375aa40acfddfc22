"""Marketplace error taxonomy"""


class MarketplaceError(Exception):
    """Base exception for marketplace errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Missing or malformed input"""

    status_code = 400


class NotFoundError(MarketplaceError):
    """Referenced document does not exist"""

    status_code = 404


class ConflictError(MarketplaceError):
    """Duplicate or state-conflicting write"""

    status_code = 409


class UpstreamError(MarketplaceError):
    """Database, payment processor or other collaborator failed"""

    status_code = 500
    # Sent to clients in place of the collaborator's own error text
    public_message = "Upstream service error"
