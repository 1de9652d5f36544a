# grovi/api/schemas.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Request Models
class SpinRequest(_Body):
    mode: Literal["free", "premium"] = "free"


class BurnRequest(_Body):
    card_id: int = Field(alias="cardId")


class FuseRequest(_Body):
    rarity: str


class RedeemRequest(_Body):
    reward_id: int = Field(alias="rewardId")


class SpinWeightIn(_Body):
    label: Optional[str] = None
    type: Literal["coins", "mystery_box", "extra_spin", "nothing"] = "coins"
    value: int = Field(default=1, ge=0)
    weight: float = Field(default=1, ge=0)


class SpinConfigRequest(_Body):
    name: str = "default"
    weights: list[SpinWeightIn]
    free_cooldown_hours: float = Field(default=24, ge=0, alias="freeCooldownHours")
    premium_cooldown_hours: float = Field(default=6, ge=0, alias="premiumCooldownHours")


class RarityPoolIn(_Body):
    rarity: Literal["Common", "Rare", "Epic", "Legendary"]
    weight: float = Field(ge=0)
    card_ids: list[int] = Field(default_factory=list, alias="cardIds")


class BoxConfigRequest(_Body):
    name: str = "default"
    pools: list[RarityPoolIn]
