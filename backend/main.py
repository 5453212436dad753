import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.accounts import router as accounts_router
from api.analytics import router as analytics_router
from api.trade import router as trade_router
from api.trades import router as trades_router
from api.user_settings import router as settings_router
from core.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(title="TradeProp Journal API", version="1.0.0")

_frontend_url = settings.FRONTEND_URL.rstrip("/")
_allowed_origins = list(set(filter(None, [
    "http://localhost:3000",
    "http://localhost:3001",
    _frontend_url,
])))

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

app.include_router(trade_router)
app.include_router(trades_router)
app.include_router(accounts_router)
app.include_router(analytics_router)
app.include_router(settings_router)

logger.info("TradeProp Journal API ready (origins=%s)", ", ".join(sorted(_allowed_origins)))


@app.get("/health")
async def health():
    return {"status": "ok"}
