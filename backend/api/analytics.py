"""Performance analytics over the user's journal."""

import calendar
from datetime import date

from fastapi import APIRouter, Header, Query
from supabase import create_client

from api.accounts import _get_user_id
from core.config import settings
from services import analytics

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _db():
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


def _fetch_trades(
    user_id: str,
    account_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[dict]:
    query = (
        _db().table("trades")
        .select("symbol, profit, pips, is_win, rrr, trade_date, trade_time, account_id")
        .eq("user_id", user_id)
    )
    if account_id:
        query = query.eq("account_id", account_id)
    if date_from:
        query = query.gte("trade_date", date_from.isoformat())
    if date_to:
        query = query.lte("trade_date", date_to.isoformat())
    return query.execute().data or []


@router.get("")
def get_analytics(
    authorization: str = Header(...),
    account_id: int | None = Query(None, ge=1),
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict:
    """Win rate, best day, equity curve, per-symbol and monthly breakdowns."""
    user_id = _get_user_id(authorization)
    trades = _fetch_trades(user_id, account_id, date_from, date_to)
    return analytics.overview(trades, settings.RECENT_DAYS)


@router.get("/summary")
def get_summary(authorization: str = Header(...)) -> dict:
    user_id = _get_user_id(authorization)
    return analytics.summary(_fetch_trades(user_id))


@router.get("/calendar")
def get_calendar(
    authorization: str = Header(...),
    year: int | None = Query(None, ge=2020, le=2030),
    month: int | None = Query(None, ge=1, le=12),
) -> list[dict]:
    """Daily P&L cells for one month (defaults to the current month)."""
    user_id = _get_user_id(authorization)
    today = date.today()
    year = year or today.year
    month = month or today.month

    last_day = calendar.monthrange(year, month)[1]
    trades = _fetch_trades(user_id, date_from=date(year, month, 1), date_to=date(year, month, last_day))
    return analytics.calendar_month(trades, year, month)


@router.get("/performance-by-symbol")
def get_performance_by_symbol(authorization: str = Header(...)) -> list[dict]:
    user_id = _get_user_id(authorization)
    return analytics.performance_by_symbol(_fetch_trades(user_id))


@router.get("/risk-metrics")
def get_risk_metrics(authorization: str = Header(...)) -> dict:
    """Average RRR, win/loss extremes, profit factor and max drawdown."""
    user_id = _get_user_id(authorization)
    return analytics.risk_metrics(_fetch_trades(user_id))
