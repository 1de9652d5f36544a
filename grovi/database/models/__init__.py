from .user import User
from .card import Card, CardOrigin, Rarity
from .ledger import LedgerEntry, TxSource
from .game_config import BoxConfig, SpinConfig
from .reward import UNLIMITED_STOCK, Redemption, Reward, RewardStatus, RewardType
from .product_card import ProductCardMap
from .logs import AdminActionLog

__all__ = [
    "User",
    "Card",
    "CardOrigin",
    "Rarity",
    "LedgerEntry",
    "TxSource",
    "SpinConfig",
    "BoxConfig",
    "Reward",
    "RewardStatus",
    "RewardType",
    "Redemption",
    "UNLIMITED_STOCK",
    "ProductCardMap",
    "AdminActionLog",
]
