"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


# === Sessions ===

class NationSpec(BaseModel):
    id: str
    name: str | None = None
    stats: dict[str, float] = Field(default_factory=dict)
    resources: dict[str, float] | None = None
    merchant_count: int | None = Field(default=None, ge=0)
    steering_bonus: float | None = None
    trade_efficiency: float | None = Field(default=None, ge=0)


class PowerModifier(BaseModel):
    label: str
    value: float  # percent


class TradePowerSources(BaseModel):
    """Holdings a nation's trade power at a node is derived from."""
    provinces: int = Field(default=0, ge=0)
    merchants: int = Field(default=0, ge=0)
    buildings: int = Field(default=0, ge=0)
    light_ships: int = Field(default=0, ge=0)
    modifiers: list[PowerModifier] = Field(default_factory=list)


class TradePowerSpec(BaseModel):
    nation_id: str
    node_id: str
    power: float | None = Field(default=None, ge=0)
    sources: TradePowerSources | None = None

    @model_validator(mode="after")
    def _power_or_sources(self):
        if (self.power is None) == (self.sources is None):
            raise ValueError("Give exactly one of 'power' or 'sources'")
        return self


class CreateSessionRequest(BaseModel):
    config: dict[str, Any] | None = None
    name: str | None = None
    nations: list[NationSpec] = Field(default_factory=list)
    nodes: list[dict[str, Any]] | None = None
    local_values: dict[str, float] | None = None
    trade_power: list[TradePowerSpec] = Field(default_factory=list)


class TurnRequest(BaseModel):
    n: int = Field(default=1, ge=1)


class SessionResponse(BaseModel):
    id: str
    name: str
    status: str
    current_turn: int
    nations: list[str]
    nodes: list[str]
    config: dict[str, Any]


class SessionSummary(BaseModel):
    id: str
    name: str
    status: str
    current_turn: int
    nation_count: int


# === Trade ===

class MerchantRequest(BaseModel):
    nation_id: str
    node_id: str
    action: Literal["collect", "transfer"]
    target: str | None = None


class TradePowerRequest(TradePowerSpec):
    pass
