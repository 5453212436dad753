"""Trade economics — pips, P&L, risk/reward and position sizing for FX pairs.

Pure functions over numeric input: no I/O and no mutable state, so every call
is independent. Unknown symbols and cross pairs degrade to documented defaults
instead of raising; callers that need to know whether a number is exact read
the ``status``/``reason`` tag on ``ProfitResult`` or use the ``assess_*``
helpers, which return a ``CalcOutcome``.
"""

import logging
import math
from enum import Enum
from types import MappingProxyType
from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict, model_validator

logger = logging.getLogger(__name__)

STANDARD_LOT_SIZE = 100_000

DEFAULT_PIP_DECIMAL_PLACE = 4
BASE_CURRENCY = "USD"

Direction = Literal["Buy", "Sell"]


class CurrencyPairInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    pip_decimal_place: int
    usd_is_quote: bool
    usd_is_base: bool

    @model_validator(mode="after")
    def _one_usd_leg(self) -> "CurrencyPairInfo":
        if self.usd_is_quote and self.usd_is_base:
            raise ValueError(f"{self.symbol}: USD cannot be both base and quote")
        return self

    @property
    def is_cross(self) -> bool:
        return not (self.usd_is_quote or self.usd_is_base)


def _pair(symbol: str, places: int, usd_is_quote: bool = False, usd_is_base: bool = False) -> CurrencyPairInfo:
    return CurrencyPairInfo(
        symbol=symbol,
        pip_decimal_place=places,
        usd_is_quote=usd_is_quote,
        usd_is_base=usd_is_base,
    )


CURRENCY_PAIRS: Mapping[str, CurrencyPairInfo] = MappingProxyType({
    p.symbol: p
    for p in (
        # XXX/USD
        _pair("EURUSD", 4, usd_is_quote=True),
        _pair("GBPUSD", 4, usd_is_quote=True),
        _pair("AUDUSD", 4, usd_is_quote=True),
        _pair("NZDUSD", 4, usd_is_quote=True),
        # USD/XXX
        _pair("USDJPY", 2, usd_is_base=True),
        _pair("USDCAD", 4, usd_is_base=True),
        _pair("USDCHF", 4, usd_is_base=True),
        # Crosses
        _pair("EURJPY", 2),
        _pair("GBPJPY", 2),
        _pair("EURGBP", 4),
        _pair("AUDCAD", 4),
        _pair("AUDNZD", 4),
    )
})


# ── Outcome tagging ────────────────────────────────────────────

class CalcStatus(str, Enum):
    COMPUTED = "computed"
    ESTIMATED = "estimated"
    INVALID = "invalid"


class CalcOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: CalcStatus
    value: float | None = None
    reason: str | None = None

    @classmethod
    def computed(cls, value: float) -> "CalcOutcome":
        return cls(status=CalcStatus.COMPUTED, value=value)

    @classmethod
    def estimated(cls, value: float, reason: str) -> "CalcOutcome":
        return cls(status=CalcStatus.ESTIMATED, value=value, reason=reason)

    @classmethod
    def invalid(cls, reason: str) -> "CalcOutcome":
        return cls(status=CalcStatus.INVALID, reason=reason)


class ProfitResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    profit: float
    pips: float
    pip_value: float  # per standard lot
    is_win: bool
    status: CalcStatus = CalcStatus.COMPUTED
    reason: str | None = None


class InvalidRiskDistance(ValueError):
    """Entry and stop loss are the same price, so no size can be derived."""


# ── Helpers ────────────────────────────────────────────────────

def round_half_up(value: float, places: int) -> float:
    # Same as Math.round on the dashboard side, not banker's rounding.
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def get_pair_info(symbol: str) -> CurrencyPairInfo | None:
    return CURRENCY_PAIRS.get(symbol)


def is_known_pair(symbol: str) -> bool:
    return get_pair_info(symbol) is not None


# ── Calculations ───────────────────────────────────────────────

def get_pip_value(symbol: str) -> float:
    """Price increment of one pip. Unknown symbols fall back to 0.0001."""
    info = get_pair_info(symbol)
    places = info.pip_decimal_place if info else DEFAULT_PIP_DECIMAL_PLACE
    return 10 ** -places


def calculate_pips(symbol: str, entry_price: float, exit_price: float) -> float:
    """Signed price movement in pips. Knows nothing about trade direction."""
    return (exit_price - entry_price) / get_pip_value(symbol)


def get_conversion_rate(symbol: str, current_price: float) -> float:
    """Multiplier that converts quote-currency profit into USD.

    Cross pairs and unknown symbols return 1: converting those needs a live
    rate for the quote currency, which this module does not fetch.
    """
    info = get_pair_info(symbol)
    if info is None:
        return 1.0
    if info.usd_is_quote:
        return current_price
    if info.usd_is_base:
        return 1 / current_price
    return 1.0


def calculate_profit(
    symbol: str,
    direction: Direction,
    entry_price: float,
    exit_price: float,
    lot_size: float,
    account_currency: str = BASE_CURRENCY,
) -> ProfitResult:
    """Profit of a closed trade in USD, plus pips and per-lot pip value.

    XXX/USD pairs need no conversion (quote currency is already USD). USD/XXX
    pairs are converted at the exit price. Crosses are left in their quote
    currency and tagged as estimated.
    """
    pip_value = get_pip_value(symbol)
    pips = calculate_pips(symbol, entry_price, exit_price)
    if direction == "Sell":
        pips = -pips

    units = lot_size * STANDARD_LOT_SIZE
    profit = pips * pip_value * units

    info = get_pair_info(symbol)
    reasons: list[str] = []
    if info is None:
        reasons.append(f"unknown symbol {symbol!r}: assumed {DEFAULT_PIP_DECIMAL_PLACE}-decimal pips")
    elif info.usd_is_base:
        profit *= get_conversion_rate(symbol, exit_price)
    elif info.is_cross:
        reasons.append(f"cross pair {info.symbol}: profit left in quote currency")

    if account_currency.upper() != BASE_CURRENCY:
        reasons.append(f"account currency {account_currency.upper()} not supported: profit in {BASE_CURRENCY}")

    profit = round_half_up(profit, 2)
    reason = "; ".join(reasons) or None
    if reason:
        logger.warning("Estimated profit for %s: %s", symbol, reason)

    return ProfitResult(
        profit=profit,
        pips=round_half_up(pips, 1),
        pip_value=pip_value * STANDARD_LOT_SIZE,
        is_win=profit > 0,
        status=CalcStatus.ESTIMATED if reason else CalcStatus.COMPUTED,
        reason=reason,
    )


def calculate_rrr(
    stop_loss: float | None,
    take_profit: float | None,
    entry_price: float,
) -> float | None:
    """Reward as a multiple of risk, one decimal place.

    Distances are absolute, so the ratio is never negative and the stop/target
    are not checked against the trade direction.
    """
    if not stop_loss or not take_profit:
        return None

    risk = abs(entry_price - stop_loss)
    reward = abs(take_profit - entry_price)
    if risk == 0:
        return None

    return round_half_up(reward / risk, 1)


def calculate_position_size(
    symbol: str,
    account_balance: float,
    risk_percentage: float,
    entry_price: float,
    stop_loss: float,
) -> float:
    """Lot size that loses ``risk_percentage`` of the balance at the stop.

    Raises InvalidRiskDistance when entry equals stop.
    """
    risk_amount = account_balance * (risk_percentage / 100)
    pip_difference = abs(calculate_pips(symbol, entry_price, stop_loss))
    if pip_difference == 0:
        raise InvalidRiskDistance(f"entry {entry_price} equals stop loss {stop_loss}")

    pip_value = get_pip_value(symbol)
    lot_size = risk_amount / (pip_difference * pip_value * STANDARD_LOT_SIZE)
    return round_half_up(lot_size, 2)


def assess_rrr(
    stop_loss: float | None,
    take_profit: float | None,
    entry_price: float,
) -> CalcOutcome:
    if not stop_loss or not take_profit:
        return CalcOutcome.invalid("stop loss and take profit are both required")
    ratio = calculate_rrr(stop_loss, take_profit, entry_price)
    if ratio is None:
        return CalcOutcome.invalid("stop loss equals entry price")
    return CalcOutcome.computed(ratio)


def assess_position_size(
    symbol: str,
    account_balance: float,
    risk_percentage: float,
    entry_price: float,
    stop_loss: float,
) -> CalcOutcome:
    if account_balance <= 0:
        return CalcOutcome.invalid("account balance must be positive")
    if risk_percentage <= 0:
        return CalcOutcome.invalid("risk percentage must be positive")
    try:
        lots = calculate_position_size(symbol, account_balance, risk_percentage, entry_price, stop_loss)
    except InvalidRiskDistance as exc:
        return CalcOutcome.invalid(f"invalid risk distance: {exc}")

    if not is_known_pair(symbol):
        return CalcOutcome.estimated(
            lots, f"unknown symbol {symbol!r}: assumed {DEFAULT_PIP_DECIMAL_PLACE}-decimal pips"
        )
    return CalcOutcome.computed(lots)


# ── Presentation ───────────────────────────────────────────────

_CURRENCY_SYMBOLS: dict[str, tuple[str, int]] = {
    "USD": ("$", 2),
    "EUR": ("€", 2),
    "GBP": ("£", 2),
    "JPY": ("¥", 0),
    "CAD": ("CA$", 2),
    "AUD": ("A$", 2),
    "NZD": ("NZ$", 2),
    "CHF": ("CHF ", 2),
}


def format_currency(value: float, currency: str = BASE_CURRENCY) -> str:
    """en-US currency text, e.g. ``$1,234.56`` or ``-€12.30``."""
    code = currency.upper()
    prefix, places = _CURRENCY_SYMBOLS.get(code, (f"{code} ", 2))
    sign = "-" if value < 0 else ""
    amount = round_half_up(abs(value), places)
    return f"{sign}{prefix}{amount:,.{places}f}"


def format_pips(pips: float) -> str:
    sign = "+" if pips > 0 else ""
    return f"{sign}{pips:.1f}"
