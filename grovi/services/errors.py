# grovi/services/errors.py
from __future__ import annotations


class EngineError(Exception):
    """
    Recoverable business failure. Raised before any mutation (or inside the
    unit of work, which then rolls back), so balances are never half-updated.
    """

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(EngineError):
    code = "not_found"


class Cooldown(EngineError):
    code = "cooldown"

    def __init__(self, message: str, *, remaining_minutes: int) -> None:
        super().__init__(message)
        self.remaining_minutes = remaining_minutes


class NoInventory(EngineError):
    code = "no_inventory"


class OutOfStock(EngineError):
    code = "out_of_stock"


class Unavailable(EngineError):
    code = "unavailable"


class InsufficientBalance(EngineError):
    code = "insufficient_balance"


class InsufficientMaterials(EngineError):
    code = "insufficient_materials"


class InvalidTier(EngineError):
    code = "invalid_tier"


class InvalidRequest(EngineError):
    code = "invalid_request"


class ConfigError(EngineError):
    """Degenerate weight table (empty, negative or zero-sum)."""

    code = "config_error"
