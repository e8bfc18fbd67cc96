from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
import asyncio
import logging
import time
from config.settings import BOT_NAME, ENVIRONMENT, DEBUG
from bot.telegram_notifier import get_telegram_notifier
from database.record_store import LEDGERS, get_record_store, normalize_order_number
from database.redis_store import get_redis_store
from services.chat_orchestrator import get_chat_orchestrator, shutdown_chat_orchestrator
from utils.error_handler import register_error_handlers, InputValidationError

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=BOT_NAME,
    version="1.0.0",
    description="Multilingual customer-support chat backend with order reconciliation",
    debug=DEBUG
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register error handlers
register_error_handlers(app)

# Include staff console router
from api.staff_console import router as staff_router
app.include_router(staff_router)


class ChatRequest(BaseModel):
    # Optional so a missing field gets the 400 chat error, not a 422
    userId: Optional[str] = None
    message: Optional[str] = None


class ImportRequest(BaseModel):
    rows: List[Dict[str, Any]]


def _check_ledger(ledger: str):
    if ledger not in LEDGERS:
        raise InputValidationError(f"Unknown ledger '{ledger}'", {"allowed": list(LEDGERS)})


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 Shutting down, flushing pending writes...")
    await shutdown_chat_orchestrator()


@app.get("/")
async def root():
    return {"status": "running", "service": BOT_NAME, "environment": ENVIRONMENT}


@app.post("/api/chat")
async def chat(request: ChatRequest, orchestrator=Depends(get_chat_orchestrator)):
    """Handle one chat message and return the reply with its classification"""
    result = await orchestrator.handle_message_detailed(request.userId, request.message)
    return result.to_dict()


@app.get("/api/history/{user_id}")
async def history(user_id: str, record_store=Depends(get_record_store)):
    turns = await asyncio.to_thread(record_store.get_conversation_history, user_id)
    return {"user_id": user_id, "history": turns}


@app.post("/api/ledgers/{ledger}/import")
async def import_ledger(ledger: str, request: ImportRequest, record_store=Depends(get_record_store)):
    """
    Bulk import parsed spreadsheet rows into a ledger.
    Duplicates are skipped; malformed rows are reported without failing the batch.
    """
    _check_ledger(ledger)
    started = time.time()
    report = await asyncio.to_thread(record_store.bulk_import_transactions, ledger, request.rows)
    report["duration_ms"] = int((time.time() - started) * 1000)
    return report


@app.get("/api/ledgers/{ledger}/{order_number}")
async def get_transaction(ledger: str, order_number: str, record_store=Depends(get_record_store)):
    _check_ledger(ledger)
    record = await asyncio.to_thread(record_store.find_transaction_by_order_number, ledger, order_number)
    if not record:
        raise HTTPException(status_code=404, detail=f"Order {normalize_order_number(order_number)} not found in {ledger}")
    return record


@app.get("/health")
async def health_check(
    record_store=Depends(get_record_store),
    redis_store=Depends(get_redis_store),
    notifier=Depends(get_telegram_notifier)
):
    """Health check with dependency status"""
    health_status = {
        "status": "healthy",
        "components": {}
    }

    if record_store.available:
        health_status["components"]["database"] = "healthy"
    else:
        health_status["components"]["database"] = "unavailable"
        health_status["status"] = "degraded"

    redis_stats = await asyncio.to_thread(redis_store.get_stats)
    if redis_stats.get("status") == "connected":
        health_status["components"]["redis"] = "healthy"
    else:
        health_status["components"]["redis"] = redis_stats.get("status", "unavailable")
        health_status["status"] = "degraded"

    health_status["components"]["telegram"] = "configured" if notifier.configured else "not_configured"

    return health_status
