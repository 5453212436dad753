from datetime import date
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

Tag = Annotated[str, Field(max_length=100)]


class TradeCreate(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=20)
    direction: Literal["Buy", "Sell"]
    entry_price: float = Field(..., gt=0)
    exit_price: float = Field(..., gt=0)
    volume: float = Field(..., gt=0, description="Lot size in standard lots")
    account_id: int = Field(..., ge=1)
    trade_date: date
    trade_time: str = Field(..., pattern=TIME_PATTERN)
    stop_loss: float | None = Field(default=None, gt=0)
    take_profit: float | None = Field(default=None, gt=0)
    notes: str | None = Field(default=None, max_length=2000)
    tags: list[Tag] = Field(default_factory=list)


class TradeUpdate(BaseModel):
    symbol: str | None = Field(default=None, min_length=1, max_length=20)
    direction: Literal["Buy", "Sell"] | None = None
    entry_price: float | None = Field(default=None, gt=0)
    exit_price: float | None = Field(default=None, gt=0)
    volume: float | None = Field(default=None, gt=0)
    account_id: int | None = Field(default=None, ge=1)
    trade_date: date | None = None
    trade_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    stop_loss: float | None = Field(default=None, gt=0)
    take_profit: float | None = Field(default=None, gt=0)
    notes: str | None = Field(default=None, max_length=2000)
    tags: list[Tag] | None = None


class TradeMetrics(BaseModel):
    profit: float
    pips: float
    pip_value: float
    is_win: bool
    rrr: float | None
    calc_status: str


class TradeOut(BaseModel):
    id: int
    account_id: int
    account_name: str | None = None
    symbol: str
    direction: str
    entry_price: float
    exit_price: float
    stop_loss: float | None = None
    take_profit: float | None = None
    volume: float
    profit: float
    pips: float
    pip_value: float
    rrr: float | None = None
    is_win: bool
    calc_status: str | None = None
    trade_date: str
    trade_time: str
    notes: str | None = None
    tags: list[str] = []
    created_at: str | None = None
    updated_at: str | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TradePage(BaseModel):
    data: list[TradeOut]
    pagination: Pagination


class UserSettingsUpdate(BaseModel):
    default_lot_size: float | None = Field(default=None, ge=0.01)
    default_risk_percentage: float | None = Field(default=None, ge=0.1, le=100)
    default_account_id: int | None = Field(default=None, ge=1)
    default_timeframe: str | None = Field(default=None, max_length=10)
    auto_calculate_position_size: bool | None = None
    enforce_risk_limits: bool | None = None
    max_risk_per_trade: float | None = Field(default=None, ge=0.1, le=100)
    max_daily_risk: float | None = Field(default=None, ge=0.1, le=100)
    default_tags: str | None = None
    theme: Literal["light", "dark", "system"] | None = None
    notifications_enabled: bool | None = None


DEFAULT_USER_SETTINGS: dict[str, Any] = {
    "default_lot_size": 0.01,
    "default_risk_percentage": 1.0,
    "default_account_id": None,
    "default_timeframe": "H1",
    "auto_calculate_position_size": True,
    "enforce_risk_limits": False,
    "max_risk_per_trade": 2.0,
    "max_daily_risk": 5.0,
    "default_tags": "",
    "theme": "system",
    "notifications_enabled": True,
}


def clean_tags(tags: list[str]) -> list[str]:
    """Strip, drop empties and duplicates, keep order."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
