"""Order reconciliation: match a user's order reference against the ledgers"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from database.record_store import LEDGERS
from utils.order_reference import ledger_hint

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = {"success", "successful", "completed", "paid", "approved", "credited"}


@dataclass(frozen=True)
class ReconciliationResult:
    order_number: str
    ledger: Optional[str] = None
    record: Optional[Dict[str, Any]] = None

    @property
    def found(self) -> bool:
        return self.record is not None

    @property
    def status(self) -> str:
        """success / pending for found records, not_found otherwise"""
        if not self.found:
            return "not_found"
        payment_status = (self.record.get("payment_status") or "").strip().lower()
        if not payment_status or payment_status in SUCCESS_STATUSES:
            return "success"
        return "pending"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_number": self.order_number,
            "ledger": self.ledger,
            "status": self.status,
            "record": self.record,
        }


class OrderReconciler:
    def __init__(self, record_store):
        self.record_store = record_store

    async def reconcile(self, order_number: str) -> ReconciliationResult:
        """
        Look the reference up in deposits, then withdrawals.

        The prefix only names the expected ledger; both are searched so a
        record imported into the other ledger is still found. A storage
        failure is reported as not found.
        """
        for ledger in LEDGERS:
            try:
                record = await asyncio.to_thread(
                    self.record_store.find_transaction_by_order_number, ledger, order_number
                )
            except Exception as e:
                logger.error(f"❌ Ledger lookup failed for {order_number} in {ledger}: {e}")
                return ReconciliationResult(order_number=order_number)
            if record:
                if ledger != ledger_hint(order_number):
                    logger.info(f"Order {order_number} found in {ledger} despite its prefix")
                logger.info(f"✅ Order {order_number} matched in {ledger}")
                return ReconciliationResult(order_number=order_number, ledger=ledger, record=record)

        logger.info(f"🔍 Order {order_number} not found in any ledger")
        return ReconciliationResult(order_number=order_number)
