"""Brokerage / prop-firm account CRUD — protected by Supabase JWT."""

import logging
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Header, HTTPException, status
from pydantic import BaseModel, Field
from supabase import create_client

from core.config import settings
from services.analytics import account_stats

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/accounts", tags=["accounts"])

AccountType = Literal["FTMO Challenge", "MyForexFunds", "Demo Account", "Live Account", "Other"]


def _db():
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


# ── Models ─────────────────────────────────────────────────────

class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    balance: float = Field(..., ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    type: AccountType | None = None
    balance: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    is_active: bool | None = None


class AccountOut(BaseModel):
    id: int
    name: str
    type: str
    balance: float
    currency: str
    is_active: bool = True
    trades_count: int = 0
    total_profit: float = 0.0
    win_rate: float = 0.0
    created_at: str | None = None


# ── Auth helper ────────────────────────────────────────────────

def _get_user_id(authorization: str) -> str:
    """Extract and verify user_id from Supabase Bearer JWT."""
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")

    token = authorization.removeprefix("Bearer ")
    supabase = _db()

    try:
        result = supabase.auth.get_user(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if not result or not result.user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return result.user.id


def _owned_account(db, user_id: str, account_id: int) -> dict | None:
    rows = (
        db.table("accounts")
        .select("*")
        .eq("id", account_id)
        .eq("user_id", user_id)
        .execute()
    ).data
    return rows[0] if rows else None


def _with_stats(db, accounts: list[dict]) -> list[AccountOut]:
    if not accounts:
        return []
    trades = (
        db.table("trades")
        .select("account_id, profit, is_win")
        .in_("account_id", [a["id"] for a in accounts])
        .execute()
    ).data or []

    by_account: dict[int, list[dict]] = {}
    for t in trades:
        by_account.setdefault(t["account_id"], []).append(t)

    return [AccountOut(**{**a, **account_stats(by_account.get(a["id"], []))}) for a in accounts]


# ── Endpoints ──────────────────────────────────────────────────

@router.get("", response_model=list[AccountOut])
def list_accounts(authorization: str = Header(...)) -> list[AccountOut]:
    """All accounts of the user, active first, then newest."""
    user_id = _get_user_id(authorization)
    db = _db()

    result = (
        db.table("accounts")
        .select("*")
        .eq("user_id", user_id)
        .order("is_active", desc=True)
        .order("created_at", desc=True)
        .execute()
    )
    return _with_stats(db, result.data or [])


@router.get("/{account_id}", response_model=AccountOut)
def get_account(account_id: int, authorization: str = Header(...)) -> AccountOut:
    user_id = _get_user_id(authorization)
    db = _db()

    account = _owned_account(db, user_id, account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return _with_stats(db, [account])[0]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_account(body: AccountCreate, authorization: str = Header(...)) -> dict:
    user_id = _get_user_id(authorization)
    db = _db()

    existing = (
        db.table("accounts")
        .select("id")
        .eq("user_id", user_id)
        .eq("name", body.name)
        .execute()
    )
    if existing.data:
        raise HTTPException(status_code=409, detail="Account name already exists")

    row = (
        db.table("accounts")
        .insert({
            **body.model_dump(),
            "currency": body.currency.upper(),
            "is_active": True,
            "user_id": user_id,
        })
        .execute()
    )
    account_id = row.data[0]["id"]
    logger.info("Account %s created for user %s", account_id, user_id)
    return {"id": account_id}


@router.put("/{account_id}")
def update_account(account_id: int, body: AccountUpdate, authorization: str = Header(...)) -> dict:
    user_id = _get_user_id(authorization)
    db = _db()

    if not _owned_account(db, user_id, account_id):
        raise HTTPException(status_code=404, detail="Account not found")

    update = body.model_dump(exclude_unset=True, exclude_none=True)
    if not update:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "name" in update:
        conflict = (
            db.table("accounts")
            .select("id")
            .eq("user_id", user_id)
            .eq("name", update["name"])
            .neq("id", account_id)
            .execute()
        )
        if conflict.data:
            raise HTTPException(status_code=409, detail="Account name already exists")
    if "currency" in update:
        update["currency"] = update["currency"].upper()

    update["updated_at"] = datetime.now(timezone.utc).isoformat()
    db.table("accounts").update(update).eq("id", account_id).eq("user_id", user_id).execute()
    return {"ok": True}


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(account_id: int, authorization: str = Header(...)) -> None:
    """Delete an account — refused while it still has trades."""
    user_id = _get_user_id(authorization)
    db = _db()

    if not _owned_account(db, user_id, account_id):
        raise HTTPException(status_code=404, detail="Account not found")

    trades = (
        db.table("trades")
        .select("id", count="exact")
        .eq("account_id", account_id)
        .execute()
    )
    if trades.count:
        raise HTTPException(
            status_code=400,
            detail=(
                "Cannot delete account with existing trades. "
                "Delete its trades first or deactivate the account."
            ),
        )

    db.table("accounts").delete().eq("id", account_id).eq("user_id", user_id).execute()
    logger.info("Account %s deleted for user %s", account_id, user_id)
