class DeckError(Exception):
    """Base exception for OutletDeck."""


class ConfigError(DeckError):
    """Raised when configuration is invalid."""


class OrderValidationError(DeckError):
    """Raised when an order cannot be built or changed as requested."""


class OrderNotFoundError(DeckError):
    """Raised when an order id is not present in the store."""


class PersistenceError(DeckError):
    """Raised when a write to the order database fails."""


class SettingsValidationError(DeckError):
    """Raised when a store, manager, product, raw material or vendor is rejected."""
