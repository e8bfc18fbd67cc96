"""
Deposit problem handling

A deposit complaint that cannot be matched to a ledger record is stored
(one open report per user, latest wins) and forwarded to the operators.
Delivery is attempted once; failures are logged and never reach the user.
"""

import asyncio
import logging
from typing import Iterable, Optional

from services.order_reconciliation import OrderReconciler
from utils.order_reference import extract_from_history

logger = logging.getLogger(__name__)


class DepositProblemHandler:
    def __init__(self, record_store, notifier, reconciler: Optional[OrderReconciler] = None):
        self.record_store = record_store
        self.notifier = notifier
        self.reconciler = reconciler or OrderReconciler(record_store)

    async def handle(self, user_id: str, message: str, order_number: Optional[str] = None, history: Iterable = ()) -> bool:
        """
        Record and forward one deposit problem.

        Returns:
            True if the operators were notified
        """
        if order_number is None:
            order_number = extract_from_history(history)
            if order_number:
                result = await self.reconciler.reconcile(order_number)
                if result.found:
                    logger.info(f"Deposit complaint from {user_id} refers to known order {order_number}, no problem recorded")
                    return False

        try:
            await asyncio.to_thread(self.record_store.upsert_deposit_problem, user_id, order_number, message)
            logger.info(f"📝 Deposit problem recorded for {user_id} (order {order_number or 'unknown'})")
        except Exception as e:
            logger.error(f"❌ Failed to store deposit problem for {user_id}: {e}")

        try:
            delivered = await self.notifier.notify_problem(user_id, message, order_number)
        except Exception as e:
            logger.error(f"❌ Deposit problem notification for {user_id} raised: {e}")
            delivered = False

        if not delivered:
            logger.warning(f"⚠️ Operators not notified about deposit problem from {user_id}")
            return False

        try:
            await asyncio.to_thread(self.record_store.mark_deposit_problem_notified, user_id)
        except Exception as e:
            logger.error(f"❌ Failed to mark deposit problem notified for {user_id}: {e}")
        return True
