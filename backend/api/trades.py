"""Trade journal endpoints — every trade is stored with its computed economics."""

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Literal

from fastapi import APIRouter, Header, HTTPException, Query, status
from supabase import create_client

from api.accounts import _get_user_id, _owned_account
from core.config import settings
from models.journal import TradeCreate, TradeMetrics, TradeOut, TradePage, TradeUpdate, clean_tags
from services.trade_calculations import calculate_profit, calculate_rrr

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/trades", tags=["trades"])

# Changing any of these invalidates the stored profit/pips/rrr.
METRIC_FIELDS = ("symbol", "direction", "entry_price", "exit_price", "volume", "stop_loss", "take_profit")


def _db():
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


def compute_metrics(
    symbol: str,
    direction: str,
    entry_price: float,
    exit_price: float,
    volume: float,
    stop_loss: float | None = None,
    take_profit: float | None = None,
) -> TradeMetrics:
    result = calculate_profit(symbol, direction, entry_price, exit_price, volume, settings.ACCOUNT_CURRENCY)
    return TradeMetrics(
        profit=result.profit,
        pips=result.pips,
        pip_value=result.pip_value,
        is_win=result.is_win,
        rrr=calculate_rrr(stop_loss, take_profit, entry_price),
        calc_status=result.status.value,
    )


def _attach_details(db, user_id: str, trades: list[dict]) -> list[TradeOut]:
    """Join tags and account names onto trade rows."""
    if not trades:
        return []

    tag_rows = (
        db.table("trade_tags")
        .select("trade_id, tag")
        .in_("trade_id", [t["id"] for t in trades])
        .execute()
    ).data or []
    tags: dict[int, list[str]] = {}
    for row in tag_rows:
        tags.setdefault(row["trade_id"], []).append(row["tag"])

    accounts = (
        db.table("accounts")
        .select("id, name")
        .eq("user_id", user_id)
        .execute()
    ).data or []
    names = {a["id"]: a["name"] for a in accounts}

    return [
        TradeOut(**{**t, "tags": tags.get(t["id"], []), "account_name": names.get(t["account_id"])})
        for t in trades
    ]


def _replace_tags(db, trade_id: int, tags: list[str]) -> None:
    db.table("trade_tags").delete().eq("trade_id", trade_id).execute()
    if tags:
        db.table("trade_tags").insert([{"trade_id": trade_id, "tag": tag} for tag in tags]).execute()


def _current_tags(db, trade_id: int) -> list[str]:
    rows = db.table("trade_tags").select("tag").eq("trade_id", trade_id).execute().data or []
    return [r["tag"] for r in rows]


def _restore_trade(db, user_id: str, trade_id: int, previous: dict, tags: list[str] | None) -> None:
    """Put back the row and tags a failed update may have half-written."""
    try:
        if previous:
            db.table("trades").update(previous).eq("id", trade_id).eq("user_id", user_id).execute()
        if tags is not None:
            _replace_tags(db, trade_id, tags)
    except Exception as exc:
        logger.error("Restoring trade %s failed: %s", trade_id, exc, exc_info=True)


# ── Endpoints ──────────────────────────────────────────────────

@router.get("", response_model=TradePage)
def list_trades(
    authorization: str = Header(...),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    symbol: str | None = None,
    direction: Literal["Buy", "Sell"] | None = None,
    is_win: bool | None = None,
    account_id: int | None = Query(None, ge=1),
    date_from: date | None = None,
    date_to: date | None = None,
) -> TradePage:
    """Paginated trades of the user, newest first."""
    user_id = _get_user_id(authorization)
    limit = limit or settings.DEFAULT_PAGE_SIZE
    if limit > settings.MAX_PAGE_SIZE:
        raise HTTPException(status_code=400, detail=f"Limit must be between 1 and {settings.MAX_PAGE_SIZE}")
    offset = (page - 1) * limit

    db = _db()
    query = db.table("trades").select("*", count="exact").eq("user_id", user_id)
    if symbol:
        query = query.eq("symbol", symbol.upper())
    if direction:
        query = query.eq("direction", direction)
    if is_win is not None:
        query = query.eq("is_win", is_win)
    if account_id:
        query = query.eq("account_id", account_id)
    if date_from:
        query = query.gte("trade_date", date_from.isoformat())
    if date_to:
        query = query.lte("trade_date", date_to.isoformat())

    result = (
        query.order("trade_date", desc=True)
        .order("trade_time", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )
    total = result.count or 0

    return TradePage(
        data=_attach_details(db, user_id, result.data or []),
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    )


@router.get("/{trade_id}", response_model=TradeOut)
def get_trade(trade_id: int, authorization: str = Header(...)) -> TradeOut:
    user_id = _get_user_id(authorization)
    db = _db()

    rows = (
        db.table("trades")
        .select("*")
        .eq("id", trade_id)
        .eq("user_id", user_id)
        .execute()
    ).data
    if not rows:
        raise HTTPException(status_code=404, detail="Trade not found")
    return _attach_details(db, user_id, rows)[0]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_trade(body: TradeCreate, authorization: str = Header(...)) -> dict:
    """Log a closed trade; profit, pips and RRR are computed server-side."""
    user_id = _get_user_id(authorization)
    db = _db()

    if not _owned_account(db, user_id, body.account_id):
        raise HTTPException(status_code=400, detail="Invalid account ID")

    symbol = body.symbol.upper()
    metrics = compute_metrics(
        symbol,
        body.direction,
        body.entry_price,
        body.exit_price,
        body.volume,
        body.stop_loss,
        body.take_profit,
    )

    record: dict[str, Any] = {
        **body.model_dump(exclude={"tags"}),
        **metrics.model_dump(),
        "symbol": symbol,
        "trade_date": body.trade_date.isoformat(),
        "user_id": user_id,
    }
    try:
        row = db.table("trades").insert(record).execute()
        trade_id = row.data[0]["id"]
    except Exception as exc:
        logger.error("Trade insert failed for user %s: %s", user_id, exc, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save trade")

    try:
        _replace_tags(db, trade_id, clean_tags(body.tags))
    except Exception as exc:
        logger.error("Tag insert failed for trade %s, removing it: %s", trade_id, exc, exc_info=True)
        db.table("trade_tags").delete().eq("trade_id", trade_id).execute()
        db.table("trades").delete().eq("id", trade_id).eq("user_id", user_id).execute()
        raise HTTPException(status_code=500, detail="Failed to save trade")

    logger.info(
        "Trade %s logged: %s %s profit=%.2f pips=%.1f (%s)",
        trade_id, body.direction, symbol, metrics.profit, metrics.pips, metrics.calc_status,
    )
    return {"id": trade_id}


@router.put("/{trade_id}")
def update_trade(trade_id: int, body: TradeUpdate, authorization: str = Header(...)) -> dict:
    """Partial update. Economics are recomputed when a price, size or pair changes."""
    user_id = _get_user_id(authorization)
    db = _db()

    rows = (
        db.table("trades")
        .select("*")
        .eq("id", trade_id)
        .eq("user_id", user_id)
        .execute()
    ).data
    if not rows:
        raise HTTPException(status_code=404, detail="Trade not found")
    existing = rows[0]

    update = body.model_dump(exclude_unset=True)
    tags = update.pop("tags", None)

    if update.get("account_id") and not _owned_account(db, user_id, update["account_id"]):
        raise HTTPException(status_code=400, detail="Invalid account ID")
    if "symbol" in update and update["symbol"]:
        update["symbol"] = update["symbol"].upper()
    if isinstance(update.get("trade_date"), date):
        update["trade_date"] = update["trade_date"].isoformat()

    # Required columns cannot be nulled out.
    update = {k: v for k, v in update.items() if v is not None or k in ("stop_loss", "take_profit", "notes")}

    if any(field in update for field in METRIC_FIELDS):
        merged = {**existing, **update}
        metrics = compute_metrics(
            merged["symbol"],
            merged["direction"],
            float(merged["entry_price"]),
            float(merged["exit_price"]),
            float(merged["volume"]),
            merged.get("stop_loss"),
            merged.get("take_profit"),
        )
        update.update(metrics.model_dump())

    if update:
        update["updated_at"] = datetime.now(timezone.utc).isoformat()
    previous = {k: existing.get(k) for k in update}
    previous_tags = _current_tags(db, trade_id) if tags is not None else None

    try:
        if update:
            db.table("trades").update(update).eq("id", trade_id).eq("user_id", user_id).execute()
        if tags is not None:
            _replace_tags(db, trade_id, clean_tags(tags))
    except Exception as exc:
        logger.error("Trade %s update failed for user %s: %s", trade_id, user_id, exc, exc_info=True)
        _restore_trade(db, user_id, trade_id, previous, previous_tags)
        raise HTTPException(status_code=500, detail="Failed to update trade")

    return {"ok": True}


@router.delete("/{trade_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trade(trade_id: int, authorization: str = Header(...)) -> None:
    user_id = _get_user_id(authorization)
    db = _db()

    result = (
        db.table("trades")
        .select("id")
        .eq("id", trade_id)
        .eq("user_id", user_id)
        .execute()
    )
    if not result.data:
        raise HTTPException(status_code=404, detail="Trade not found")

    db.table("trade_tags").delete().eq("trade_id", trade_id).execute()
    db.table("trades").delete().eq("id", trade_id).eq("user_id", user_id).execute()
    logger.info("Trade %s deleted for user %s", trade_id, user_id)
