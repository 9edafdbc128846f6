# ------------------------------ EXCEPTIONS ------------------------------

class BuyeeError(Exception):
    """Base class for errors raised by the Buyee automation layer."""

class LoginError(BuyeeError):
    """Raised when the login flow cannot be completed."""

class TwoFactorError(BuyeeError):
    """Raised when a two-factor code is rejected or cannot be submitted."""

class SessionError(BuyeeError):
    """Raised when no usable authenticated session is available."""

class InvalidProductUrlError(BuyeeError, ValueError):
    """Raised when a product URL does not contain an auction ID."""

class SearchContextNotFound(BuyeeError):
    """Raised when a search context is unknown or has expired."""

# ------------------------------ END OF FILE ------------------------------
