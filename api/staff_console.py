"""
Staff console API endpoints
Lets support staff log in, browse conversations, reply to users and review open deposit problems
"""

import asyncio
import logging
import secrets
from typing import Optional, Set
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel
from config.settings import STAFF_USERNAME, STAFF_PASSWORD
from database.record_store import get_record_store
from services.chat_orchestrator import get_chat_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/staff", tags=["staff"])

# Issued tokens; valid until the process restarts
_active_tokens: Set[str] = set()


class LoginRequest(BaseModel):
    username: str
    password: str


class ReplyRequest(BaseModel):
    userId: str
    message: str


def require_staff(authorization: Optional[str] = Header(default=None)) -> str:
    """Accept "Bearer <token>" for a token issued by /login"""
    token = (authorization or "").removeprefix("Bearer ").strip()
    if not token or token not in _active_tokens:
        raise HTTPException(status_code=401, detail="Staff authentication required")
    return token


@router.post("/login")
async def login(request: LoginRequest):
    if not (
        secrets.compare_digest(request.username, STAFF_USERNAME)
        and secrets.compare_digest(request.password, STAFF_PASSWORD)
    ):
        logger.warning(f"⚠️ Failed staff login for '{request.username}'")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = secrets.token_hex(32)
    _active_tokens.add(token)
    logger.info(f"🔑 Staff login: {request.username}")
    return {"success": True, "token": token}


@router.get("/conversations")
async def conversations(
    limit: int = Query(100, ge=1, le=1000),
    _: str = Depends(require_staff),
    record_store=Depends(get_record_store)
):
    items = await asyncio.to_thread(record_store.list_conversations, limit)
    return {"conversations": items, "count": len(items)}


@router.get("/conversations/{user_id}")
async def conversation(
    user_id: str,
    _: str = Depends(require_staff),
    record_store=Depends(get_record_store),
    orchestrator=Depends(get_chat_orchestrator)
):
    """Persisted history plus live session state when the user is in memory"""
    history = await asyncio.to_thread(record_store.get_conversation_history, user_id)
    session = orchestrator.sessions.peek(user_id)
    return {
        "user_id": user_id,
        "history": history,
        "deposit_problem": await asyncio.to_thread(record_store.get_deposit_problem, user_id),
        "session": {
            "attempt_count": session.attempt_count,
            "closing_eligible": session.is_closing_eligible()
        } if session else None
    }


@router.post("/reply")
async def reply(
    request: ReplyRequest,
    _: str = Depends(require_staff),
    orchestrator=Depends(get_chat_orchestrator)
):
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    session = await orchestrator.record_staff_reply(request.userId, request.message)
    return {"success": True, "closing_eligible": session.is_closing_eligible()}


@router.get("/deposit-problems")
async def deposit_problems(_: str = Depends(require_staff), record_store=Depends(get_record_store)):
    problems = await asyncio.to_thread(record_store.get_open_deposit_problems)
    return {"problems": problems, "count": len(problems)}


@router.get("/stats")
async def stats(_: str = Depends(require_staff), record_store=Depends(get_record_store)):
    return await asyncio.to_thread(record_store.get_stats)
