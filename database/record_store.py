"""SQL record store: users, conversation turns, deposit problems and the two transaction ledgers"""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict, Any, Iterable

from sqlalchemy import (
    create_engine, Column, Integer, String, Text, DateTime, Date, Numeric, Boolean, func
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from config.settings import DATABASE_URL, HISTORY_LIMIT
from utils.error_handler import DatabaseError
from utils.retry import retry_db_operation

logger = logging.getLogger(__name__)

Base = declarative_base()

LEDGERS = ("deposits", "withdrawals")

# Spreadsheet serial day numbers count from this date
EXCEL_EPOCH = date(1899, 12, 30)
ORDER_NUMBER_LENGTH = 64
# Exclusive upper bound of a Numeric(14, 2) column
MAX_AMOUNT = Decimal(10) ** 12
CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    last_active = Column(DateTime, default=utcnow)


class ConversationTurnRow(Base):
    """One chat turn, user or assistant"""
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # user/assistant
    text = Column(Text, nullable=False)
    category = Column(String(50))
    language = Column(String(30))
    escalated = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)


class DepositProblemRow(Base):
    """Latest unresolved deposit report per user"""
    __tablename__ = "deposit_problems"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), unique=True, nullable=False)
    order_number = Column(String(64))
    description = Column(Text)
    status = Column(String(20), default="open")  # open/resolved
    notified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class TransactionMixin:
    id = Column(Integer, primary_key=True)
    order_number = Column(String(ORDER_NUMBER_LENGTH), unique=True, nullable=False)
    delivery_type = Column(String(100))
    amount = Column(Numeric(14, 2))
    payment_status = Column(String(50))
    import_date = Column(Date)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class DepositRow(TransactionMixin, Base):
    __tablename__ = "deposits"


class WithdrawalRow(TransactionMixin, Base):
    __tablename__ = "withdrawals"


LEDGER_MODELS = {"deposits": DepositRow, "withdrawals": WithdrawalRow}


def normalize_order_number(value) -> str:
    return str(value).strip().lower() if value is not None else ""


def parse_amount(value) -> Optional[Decimal]:
    """Amount as a non-negative Decimal; None when blank"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid amount {value!r}")
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise ValueError(f"invalid amount {value!r}")
    if not amount.is_finite():
        raise ValueError(f"invalid amount {value!r}")
    if amount < 0:
        raise ValueError(f"negative amount {value!r}")
    if amount >= MAX_AMOUNT or amount.quantize(CENT) >= MAX_AMOUNT:
        raise ValueError(f"amount too large {value!r}")
    return amount


def parse_import_date(value) -> Optional[date]:
    """ISO strings, date/datetime objects and spreadsheet serial numbers"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _from_serial(value)
    text = str(value).strip()
    if text.replace(".", "", 1).isdigit():
        return _from_serial(float(text))
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValueError(f"invalid date {value!r}")


def _from_serial(serial) -> date:
    try:
        return EXCEL_EPOCH + timedelta(days=int(serial))
    except (OverflowError, ValueError):
        raise ValueError(f"invalid date {serial!r}")


def _text_field(row: Dict[str, Any], snake: str, camel: str, max_length: int) -> Optional[str]:
    value = _field(row, snake, camel)
    if value is None:
        return None
    value = str(value).strip()
    if len(value) > max_length:
        raise ValueError(f"{snake} longer than {max_length} characters")
    return value


def _field(row: Dict[str, Any], snake: str, camel: str):
    return row.get(snake, row.get(camel))


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _transaction_dict(row) -> Dict[str, Any]:
    return {
        "order_number": row.order_number,
        "delivery_type": row.delivery_type,
        "amount": float(row.amount) if row.amount is not None else None,
        "payment_status": row.payment_status,
        "import_date": _iso(row.import_date),
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


def _problem_dict(row: DepositProblemRow) -> Dict[str, Any]:
    return {
        "user_id": row.user_id,
        "order_number": row.order_number,
        "description": row.description,
        "status": row.status,
        "notified": bool(row.notified),
        "created_at": _iso(row.created_at),
        "updated_at": _iso(row.updated_at),
    }


class RecordStore:
    """SQLAlchemy-backed persistence for the chat pipeline"""

    def __init__(self, database_url: str = DATABASE_URL):
        """Initialize database connection"""
        try:
            self.engine = create_engine(database_url, **self._engine_options(database_url))
            self.SessionLocal = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False
            )

            # Create tables if they don't exist
            Base.metadata.create_all(self.engine)
            logger.info(f"✓ Record store ready ({self.engine.dialect.name})")
        except Exception as e:
            logger.error(f"❌ Failed to connect to database: {e}")
            self.engine = None
            self.SessionLocal = None

    @staticmethod
    def _engine_options(database_url: str) -> Dict[str, Any]:
        if database_url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                options["poolclass"] = StaticPool
            return options
        return {
            'pool_size': 20,
            'max_overflow': 40,
            'pool_timeout': 30,
            'pool_recycle': 3600,
            'pool_pre_ping': True,
        }

    @property
    def available(self) -> bool:
        return self.SessionLocal is not None

    def get_session(self) -> Optional[Session]:
        """Get database session"""
        if not self.SessionLocal:
            return None
        return self.SessionLocal()

    def _ensure_user(self, session: Session, user_id: str) -> User:
        user = session.query(User).filter(User.user_id == user_id).first()
        if user is None:
            user = User(user_id=user_id)
            session.add(user)
        else:
            user.last_active = utcnow()
        return user

    @retry_db_operation()
    def get_or_create_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        session = self.get_session()
        if not session:
            logger.warning("Database not available")
            return None

        try:
            user = self._ensure_user(session, user_id)
            session.commit()
            return {
                "user_id": user.user_id,
                "created_at": _iso(user.created_at),
                "last_active": _iso(user.last_active),
            }
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error getting user {user_id}: {e}")
            raise
        finally:
            session.close()

    @retry_db_operation()
    def append_conversation_turn(
        self,
        user_id: str,
        role: str,
        text: str,
        category: Optional[str] = None,
        language: Optional[str] = None,
        escalated: bool = False
    ):
        """Append a turn; creates the user row on first contact"""
        session = self.get_session()
        if not session:
            logger.warning("Database not available, turn not persisted")
            return

        try:
            self._ensure_user(session, user_id)
            session.add(ConversationTurnRow(
                user_id=user_id,
                role=role,
                text=text,
                category=category,
                language=language,
                escalated=escalated
            ))
            session.commit()
            logger.debug(f"Saved {role} turn for {user_id}")
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error saving conversation turn: {e}")
            raise
        finally:
            session.close()

    @retry_db_operation()
    def get_conversation_history(self, user_id: str, limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
        """Most recent turns for a user, oldest first"""
        session = self.get_session()
        if not session:
            return []

        try:
            rows = (
                session.query(ConversationTurnRow)
                .filter(ConversationTurnRow.user_id == user_id)
                .order_by(ConversationTurnRow.created_at.desc(), ConversationTurnRow.id.desc())
                .limit(limit)
                .all()
            )

            return [
                {
                    "role": row.role,
                    "text": row.text,
                    "category": row.category,
                    "language": row.language,
                    "escalated": bool(row.escalated),
                    "timestamp": _iso(row.created_at)
                }
                for row in reversed(rows)
            ]
        except SQLAlchemyError as e:
            logger.error(f"Error getting conversation history: {e}")
            return []
        finally:
            session.close()

    @retry_db_operation()
    def upsert_deposit_problem(self, user_id: str, order_number: Optional[str], description: str) -> Optional[Dict[str, Any]]:
        """Record a deposit problem, replacing any earlier report from the same user"""
        session = self.get_session()
        if not session:
            logger.warning("Database not available, deposit problem not recorded")
            return None

        try:
            self._ensure_user(session, user_id)
            problem = session.query(DepositProblemRow).filter(DepositProblemRow.user_id == user_id).first()
            if problem is None:
                problem = DepositProblemRow(user_id=user_id)
                session.add(problem)
            problem.order_number = order_number
            problem.description = description
            problem.status = "open"
            problem.notified = False
            problem.updated_at = utcnow()
            session.commit()
            return _problem_dict(problem)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error saving deposit problem: {e}")
            raise
        finally:
            session.close()

    @retry_db_operation()
    def mark_deposit_problem_notified(self, user_id: str) -> bool:
        session = self.get_session()
        if not session:
            return False

        try:
            updated = (
                session.query(DepositProblemRow)
                .filter(DepositProblemRow.user_id == user_id)
                .update({"notified": True, "updated_at": utcnow()})
            )
            session.commit()
            return bool(updated)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error marking deposit problem notified: {e}")
            raise
        finally:
            session.close()

    @retry_db_operation()
    def get_deposit_problem(self, user_id: str) -> Optional[Dict[str, Any]]:
        session = self.get_session()
        if not session:
            return None

        try:
            problem = session.query(DepositProblemRow).filter(DepositProblemRow.user_id == user_id).first()
            return _problem_dict(problem) if problem else None
        except SQLAlchemyError as e:
            logger.error(f"Error getting deposit problem: {e}")
            return None
        finally:
            session.close()

    @retry_db_operation()
    def get_open_deposit_problems(self) -> List[Dict[str, Any]]:
        session = self.get_session()
        if not session:
            return []

        try:
            problems = (
                session.query(DepositProblemRow)
                .filter(DepositProblemRow.status == "open")
                .order_by(DepositProblemRow.updated_at.desc())
                .all()
            )
            return [_problem_dict(problem) for problem in problems]
        except SQLAlchemyError as e:
            logger.error(f"Error getting open deposit problems: {e}")
            return []
        finally:
            session.close()

    @retry_db_operation()
    def find_transaction_by_order_number(self, ledger: str, order_number: str) -> Optional[Dict[str, Any]]:
        """Exact match on the normalized order number"""
        model = LEDGER_MODELS[ledger]
        session = self.get_session()
        if not session:
            return None

        try:
            row = (
                session.query(model)
                .filter(model.order_number == normalize_order_number(order_number))
                .first()
            )
            return _transaction_dict(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Error looking up {order_number} in {ledger}: {e}")
            raise
        finally:
            session.close()

    def bulk_import_transactions(self, ledger: str, rows: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Import ledger rows in a single transaction.

        Duplicates (already stored, or repeated earlier in the batch) are
        skipped and counted; the first write wins. Malformed rows are
        collected as "Row N: ..." errors and do not abort the batch.

        Args:
            ledger: "deposits" or "withdrawals"
            rows: dicts with order_number, delivery_type, amount,
                payment_status, import_date (camelCase keys accepted)

        Returns:
            {"inserted_count", "duplicate_count", "error_count", "errors", "total"}
        """
        model = LEDGER_MODELS[ledger]
        rows = list(rows)
        report = {"inserted_count": 0, "duplicate_count": 0, "error_count": 0, "errors": [], "total": len(rows)}

        session = self.get_session()
        if not session:
            raise DatabaseError("Database not available", {"ledger": ledger})

        try:
            candidates = {normalize_order_number(_field(row, "order_number", "orderNumber")) for row in rows}
            candidates.discard("")
            seen = set()
            if candidates:
                seen = {
                    order_number for (order_number,) in
                    session.query(model.order_number).filter(model.order_number.in_(candidates))
                }

            for index, row in enumerate(rows, start=1):
                order_number = normalize_order_number(_field(row, "order_number", "orderNumber"))
                if not order_number:
                    report["errors"].append(f"Row {index}: missing order number")
                    continue
                try:
                    if len(order_number) > ORDER_NUMBER_LENGTH:
                        raise ValueError(f"order number longer than {ORDER_NUMBER_LENGTH} characters")
                    amount = parse_amount(row.get("amount"))
                    import_date = parse_import_date(_field(row, "import_date", "importDate"))
                    delivery_type = _text_field(row, "delivery_type", "deliveryType", 100)
                    payment_status = _text_field(row, "payment_status", "paymentStatus", 50)
                except ValueError as e:
                    report["errors"].append(f"Row {index}: {e}")
                    continue

                if order_number in seen:
                    report["duplicate_count"] += 1
                    continue

                seen.add(order_number)
                session.add(model(
                    order_number=order_number,
                    delivery_type=delivery_type,
                    amount=amount,
                    payment_status=payment_status,
                    import_date=import_date
                ))
                report["inserted_count"] += 1

            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"❌ Bulk import into {ledger} failed: {e}", exc_info=True)
            raise DatabaseError(f"Bulk import into {ledger} failed", {"ledger": ledger})
        finally:
            session.close()

        report["error_count"] = len(report["errors"])
        logger.info(
            f"📥 Imported {ledger}: {report['inserted_count']} inserted, "
            f"{report['duplicate_count']} duplicates, {report['error_count']} errors"
        )
        return report

    @retry_db_operation()
    def list_conversations(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Users ordered by last activity, with their latest assistant reply"""
        session = self.get_session()
        if not session:
            return []

        try:
            summaries = (
                session.query(
                    ConversationTurnRow.user_id,
                    func.max(ConversationTurnRow.created_at).label("last_message_time"),
                    func.count(ConversationTurnRow.id).label("message_count")
                )
                .group_by(ConversationTurnRow.user_id)
                .order_by(func.max(ConversationTurnRow.created_at).desc())
                .limit(limit)
                .all()
            )

            conversations = []
            for user_id, last_message_time, message_count in summaries:
                last_reply = (
                    session.query(ConversationTurnRow.text)
                    .filter(
                        ConversationTurnRow.user_id == user_id,
                        ConversationTurnRow.role == "assistant"
                    )
                    .order_by(ConversationTurnRow.created_at.desc(), ConversationTurnRow.id.desc())
                    .first()
                )
                conversations.append({
                    "user_id": user_id,
                    "last_message_time": _iso(last_message_time),
                    "message_count": message_count,
                    "last_reply": last_reply[0] if last_reply else None
                })
            return conversations
        except SQLAlchemyError as e:
            logger.error(f"Error listing conversations: {e}")
            return []
        finally:
            session.close()

    @retry_db_operation()
    def get_stats(self) -> Dict[str, Any]:
        session = self.get_session()
        if not session:
            return {"status": "unavailable"}

        try:
            return {
                "status": "connected",
                "users": session.query(User).count(),
                "messages": session.query(ConversationTurnRow).count(),
                "escalations": session.query(ConversationTurnRow).filter(ConversationTurnRow.escalated.is_(True)).count(),
                "open_deposit_problems": session.query(DepositProblemRow).filter(DepositProblemRow.status == "open").count(),
                "resolved_deposit_problems": session.query(DepositProblemRow).filter(DepositProblemRow.status == "resolved").count(),
                "deposits": session.query(DepositRow).count(),
                "withdrawals": session.query(WithdrawalRow).count()
            }
        except SQLAlchemyError as e:
            logger.error(f"Error getting stats: {e}")
            return {"status": "error", "error": str(e)}
        finally:
            session.close()

    def close(self):
        if self.engine:
            self.engine.dispose()
            logger.info("Database connections closed")


_record_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """Get or create the process-wide record store"""
    global _record_store
    if _record_store is None:
        _record_store = RecordStore()
    return _record_store
