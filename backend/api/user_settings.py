"""Per-user trading preferences (default lot size, risk limits, theme)."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Header, HTTPException
from supabase import create_client

from api.accounts import _get_user_id
from core.config import settings
from models.journal import DEFAULT_USER_SETTINGS, UserSettingsUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/settings", tags=["settings"])


def _db():
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


def _load_or_create(db, user_id: str) -> dict:
    """Return the user's settings row, inserting defaults on first access."""
    rows = db.table("user_settings").select("*").eq("user_id", user_id).execute().data
    if rows:
        return rows[0]
    created = db.table("user_settings").insert({"user_id": user_id, **DEFAULT_USER_SETTINGS}).execute()
    logger.info("Default settings created for user %s", user_id)
    return created.data[0]


@router.get("")
def get_settings(authorization: str = Header(...)) -> dict:
    user_id = _get_user_id(authorization)
    return _load_or_create(_db(), user_id)


@router.put("")
def update_settings(body: UserSettingsUpdate, authorization: str = Header(...)) -> dict:
    """Partial update; a default account must be one of the user's active accounts."""
    user_id = _get_user_id(authorization)
    db = _db()

    update = body.model_dump(exclude_unset=True)
    # Only the default account can be cleared; other columns always hold a value.
    update = {k: v for k, v in update.items() if v is not None or k == "default_account_id"}
    if not update:
        raise HTTPException(status_code=400, detail="No fields to update")

    if update.get("default_account_id") is not None:
        account = (
            db.table("accounts")
            .select("id")
            .eq("id", update["default_account_id"])
            .eq("user_id", user_id)
            .eq("is_active", True)
            .execute()
        )
        if not account.data:
            raise HTTPException(
                status_code=400,
                detail="Invalid default account ID or account is not active",
            )

    _load_or_create(db, user_id)
    update["updated_at"] = datetime.now(timezone.utc).isoformat()
    result = db.table("user_settings").update(update).eq("user_id", user_id).execute()
    return result.data[0]


@router.post("/reset")
def reset_settings(authorization: str = Header(...)) -> dict:
    user_id = _get_user_id(authorization)
    db = _db()

    db.table("user_settings").delete().eq("user_id", user_id).execute()
    logger.info("Settings reset for user %s", user_id)
    return _load_or_create(db, user_id)


@router.get("/accounts")
def settings_accounts(authorization: str = Header(...)) -> list[dict]:
    """Active accounts for the default-account picker."""
    user_id = _get_user_id(authorization)

    result = (
        _db().table("accounts")
        .select("id, name, type, currency, is_active")
        .eq("user_id", user_id)
        .eq("is_active", True)
        .order("name")
        .execute()
    )
    return result.data or []
