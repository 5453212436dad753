"""Journal performance aggregation: win rate, equity curve, calendar, risk metrics.

Every function takes the trade rows as returned by Supabase (dicts with
``trade_date`` as ``YYYY-MM-DD``, ``trade_time``, ``symbol``, ``profit``,
``pips``, ``is_win``, ``rrr``) and returns plain JSON-ready structures.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Iterable

Trade = dict[str, Any]

MONTHS_SHOWN = 12


def _profit(trade: Trade) -> float:
    return float(trade.get("profit") or 0)


def _day(trade: Trade) -> str:
    return str(trade["trade_date"])[:10]


def _win_rate(wins: int, total: int) -> float:
    return (wins / total) * 100 if total else 0.0


def _group(trades: Iterable[Trade], key) -> dict[str, list[Trade]]:
    groups: dict[str, list[Trade]] = defaultdict(list)
    for t in trades:
        groups[key(t)].append(t)
    return groups


def _chronological(trades: Iterable[Trade]) -> list[Trade]:
    return sorted(trades, key=lambda t: (_day(t), str(t.get("trade_time") or "")))


def count_outcomes(trades: list[Trade]) -> tuple[int, int, int]:
    """Return (total, winning, losing). Break-even trades count as losing."""
    total = len(trades)
    wins = sum(1 for t in trades if t.get("is_win"))
    return total, wins, total - wins


def daily_totals(trades: list[Trade]) -> list[dict[str, Any]]:
    """Per-day profit and trade count, oldest day first."""
    return [
        {"date": day, "profit": sum(_profit(t) for t in rows), "trades": len(rows)}
        for day, rows in sorted(_group(trades, _day).items())
    ]


def best_day(trades: list[Trade], today: date | None = None) -> dict[str, Any]:
    days = daily_totals(trades)
    if not days:
        return {"date": (today or date.today()).isoformat(), "profit": 0.0, "trades": 0}
    return max(days, key=lambda d: d["profit"])


def profit_by_symbol(trades: list[Trade]) -> list[dict[str, Any]]:
    rows = [
        {"symbol": symbol, "profit": sum(_profit(t) for t in group), "trades": len(group)}
        for symbol, group in _group(trades, lambda t: t["symbol"]).items()
    ]
    return sorted(rows, key=lambda r: r["profit"], reverse=True)


def profit_by_day(trades: list[Trade], days: int, today: date | None = None) -> list[dict[str, Any]]:
    """Daily totals restricted to the last ``days`` days."""
    since = ((today or date.today()) - timedelta(days=days)).isoformat()
    return [
        {"day": d["date"], "profit": d["profit"], "trades": d["trades"]}
        for d in daily_totals(trades)
        if d["date"] >= since
    ]


def equity_curve(trades: list[Trade]) -> list[dict[str, Any]]:
    """Cumulative profit at the end of each trading day."""
    equity = 0.0
    curve: list[dict[str, Any]] = []
    for d in daily_totals(trades):
        equity += d["profit"]
        curve.append({"date": d["date"], "equity": equity})
    return curve


def monthly_performance(trades: list[Trade], months: int = MONTHS_SHOWN) -> list[dict[str, Any]]:
    """Most recent ``months`` calendar months, newest first."""
    rows = []
    for month, group in _group(trades, lambda t: _day(t)[:7]).items():
        total, wins, _ = count_outcomes(group)
        rows.append({
            "month": month,
            "profit": sum(_profit(t) for t in group),
            "trades": total,
            "winning_trades": wins,
            "win_rate": _win_rate(wins, total),
        })
    rows.sort(key=lambda r: r["month"], reverse=True)
    return rows[:months]


def overview(trades: list[Trade], recent_days: int, today: date | None = None) -> dict[str, Any]:
    """Full analytics payload for the dashboard."""
    total, wins, losses = count_outcomes(trades)
    return {
        "total_trades": total,
        "winning_trades": wins,
        "losing_trades": losses,
        "win_rate": _win_rate(wins, total),
        "total_profit": sum(_profit(t) for t in trades),
        "best_day": best_day(trades, today),
        "profit_by_symbol": profit_by_symbol(trades),
        "profit_by_day": profit_by_day(trades, recent_days, today),
        "equity_curve": equity_curve(trades),
        "monthly_performance": monthly_performance(trades),
    }


def summary(trades: list[Trade]) -> dict[str, Any]:
    total, wins, _ = count_outcomes(trades)
    days = daily_totals(trades)
    return {
        "total_trades": total,
        "total_profit": sum(_profit(t) for t in trades),
        "win_rate": round(_win_rate(wins, total), 2),
        "best_day_profit": max((d["profit"] for d in days), default=0.0),
    }


def calendar_month(trades: list[Trade], year: int, month: int) -> list[dict[str, Any]]:
    """Per-day cells for one month of the calendar heatmap."""
    prefix = f"{year:04d}-{month:02d}-"
    in_month = [t for t in trades if _day(t).startswith(prefix)]
    cells = []
    for day, group in sorted(_group(in_month, lambda t: _day(t)[8:10]).items()):
        profit = sum(_profit(t) for t in group)
        cells.append({"day": int(day), "profit": profit, "trades": len(group), "win": profit > 0})
    return cells


def performance_by_symbol(trades: list[Trade]) -> list[dict[str, Any]]:
    rows = []
    for symbol, group in _group(trades, lambda t: t["symbol"]).items():
        total, wins, losses = count_outcomes(group)
        profit = sum(_profit(t) for t in group)
        pips = sum(float(t.get("pips") or 0) for t in group)
        rows.append({
            "symbol": symbol,
            "total_trades": total,
            "winning_trades": wins,
            "losing_trades": losses,
            "total_profit": profit,
            "average_profit": profit / total,
            "win_rate": round(_win_rate(wins, total), 2),
            "total_pips": pips,
            "average_pips": pips / total,
        })
    return sorted(rows, key=lambda r: r["total_profit"], reverse=True)


def max_drawdown(trades: list[Trade]) -> float:
    """Largest peak-to-trough fall of the trade-by-trade equity curve."""
    peak = equity = drawdown = 0.0
    for t in _chronological(trades):
        equity += _profit(t)
        peak = max(peak, equity)
        drawdown = max(drawdown, peak - equity)
    return drawdown


def risk_metrics(trades: list[Trade]) -> dict[str, Any]:
    profits = [_profit(t) for t in trades]
    wins = [p for p in profits if p > 0]
    losses = [abs(p) for p in profits if p < 0]
    rrrs = [float(t["rrr"]) for t in trades if t.get("rrr") is not None]

    gross_loss = sum(losses)
    return {
        "average_rrr": sum(rrrs) / len(rrrs) if rrrs else 0.0,
        "largest_win": max(profits, default=0.0),
        "largest_loss": abs(min(profits, default=0.0)),
        "average_win": sum(wins) / len(wins) if wins else 0.0,
        "average_loss": gross_loss / len(losses) if losses else 0.0,
        "profit_factor": sum(wins) / gross_loss if gross_loss > 0 else 0.0,
        "max_drawdown": max_drawdown(trades),
    }


def account_stats(trades: list[Trade]) -> dict[str, Any]:
    """Per-account aggregates shown next to each account."""
    total, wins, _ = count_outcomes(trades)
    return {
        "trades_count": total,
        "total_profit": sum(_profit(t) for t in trades),
        "win_rate": round(_win_rate(wins, total), 2),
    }
