"""Stateless trade calculators for the dashboard's what-if forms."""

import logging

from fastapi import APIRouter, HTTPException

from models.trade import (
    PairOut,
    PipRequest,
    PipResponse,
    PositionSizeRequest,
    PositionSizeResponse,
    ProfitRequest,
    ProfitResponse,
    RiskRewardRequest,
    RiskRewardResponse,
)
from services.trade_calculations import (
    CURRENCY_PAIRS,
    CalcStatus,
    STANDARD_LOT_SIZE,
    assess_position_size,
    assess_rrr,
    calculate_pips,
    calculate_profit,
    format_currency,
    format_pips,
    get_pip_value,
    is_known_pair,
    round_half_up,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/trade", tags=["trade"])


@router.get("/pairs", response_model=list[PairOut])
def list_pairs() -> list[PairOut]:
    """Currency pairs with exact pip and USD-conversion metadata."""
    return [
        PairOut(
            symbol=p.symbol,
            pip_decimal_place=p.pip_decimal_place,
            pip_size=get_pip_value(p.symbol),
            usd_is_quote=p.usd_is_quote,
            usd_is_base=p.usd_is_base,
        )
        for p in CURRENCY_PAIRS.values()
    ]


@router.post("/pips", response_model=PipResponse)
def pips(req: PipRequest) -> PipResponse:
    raw = calculate_pips(req.symbol, req.price_from, req.price_to)
    value = round_half_up(raw, 1)

    return PipResponse(
        pips=abs(value),
        direction="up" if value > 0 else "down",
        pip_size=get_pip_value(req.symbol),
        known_pair=is_known_pair(req.symbol),
    )


@router.post("/profit", response_model=ProfitResponse)
def profit(req: ProfitRequest) -> ProfitResponse:
    result = calculate_profit(
        req.symbol,
        req.direction,
        req.entry_price,
        req.exit_price,
        req.lot_size,
        req.account_currency,
    )
    return ProfitResponse(
        **result.model_dump(),
        formatted_profit=format_currency(result.profit),
        formatted_pips=format_pips(result.pips),
    )


@router.post("/risk-reward", response_model=RiskRewardResponse)
def risk_reward(req: RiskRewardRequest) -> RiskRewardResponse:
    outcome = assess_rrr(req.stop_loss, req.take_profit, req.entry)

    return RiskRewardResponse(
        ratio=outcome.value,
        ratio_label=f"1:{outcome.value}" if outcome.value is not None else None,
        status=outcome.status,
        reason=outcome.reason,
    )


@router.post("/position-size", response_model=PositionSizeResponse)
def position_size(req: PositionSizeRequest) -> PositionSizeResponse:
    outcome = assess_position_size(
        req.symbol,
        req.account_balance,
        req.risk_percent,
        req.entry,
        req.stop_loss,
    )
    if outcome.status == CalcStatus.INVALID:
        raise HTTPException(status_code=422, detail=outcome.reason)

    lots = outcome.value or 0.0
    return PositionSizeResponse(
        risk_amount=round_half_up(req.account_balance * (req.risk_percent / 100), 2),
        lots=lots,
        units=int(round(lots * STANDARD_LOT_SIZE)),
        status=outcome.status,
        reason=outcome.reason,
    )
