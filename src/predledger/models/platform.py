"""GlobalConfig - the single platform-wide record."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GlobalConfig(BaseModel):
    """Platform administrator, fee schedule and market counter."""

    authority: str
    fee_bps: int = Field(..., ge=0, description="Platform fee in basis points of the total pool")
    fee_recipient: str
    total_markets: int = 0
    initialized_at: int | None = None  # unix seconds
