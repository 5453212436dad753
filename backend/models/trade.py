from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field

from services.trade_calculations import CalcStatus

# Registry lookups are exact, so request symbols are upper-cased on the way in.
Symbol = Annotated[str, Field(min_length=1, max_length=20), AfterValidator(str.upper)]


class PairOut(BaseModel):
    symbol: str
    pip_decimal_place: int
    pip_size: float
    usd_is_quote: bool
    usd_is_base: bool


class PipRequest(BaseModel):
    symbol: Symbol
    price_from: float = Field(..., gt=0)
    price_to: float = Field(..., gt=0)


class PipResponse(BaseModel):
    pips: float
    direction: str
    pip_size: float
    known_pair: bool


class ProfitRequest(BaseModel):
    symbol: Symbol
    direction: Literal["Buy", "Sell"]
    entry_price: float = Field(..., gt=0)
    exit_price: float = Field(..., gt=0)
    lot_size: float = Field(..., gt=0)
    account_currency: str = Field(default="USD", min_length=3, max_length=3)


class ProfitResponse(BaseModel):
    profit: float
    pips: float
    pip_value: float = Field(..., description="Pip value per standard lot")
    is_win: bool
    status: CalcStatus
    reason: str | None = None
    formatted_profit: str
    formatted_pips: str


class RiskRewardRequest(BaseModel):
    entry: float = Field(..., gt=0)
    stop_loss: float | None = Field(default=None, gt=0)
    take_profit: float | None = Field(default=None, gt=0)


class RiskRewardResponse(BaseModel):
    ratio: float | None
    ratio_label: str | None
    status: CalcStatus
    reason: str | None = None


class PositionSizeRequest(BaseModel):
    symbol: Symbol
    account_balance: float = Field(..., gt=0)
    risk_percent: float = Field(..., gt=0, le=100)
    entry: float = Field(..., gt=0)
    stop_loss: float = Field(..., gt=0)


class PositionSizeResponse(BaseModel):
    risk_amount: float
    lots: float
    units: int
    status: CalcStatus
    reason: str | None = None
