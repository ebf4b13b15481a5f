"""Payment transactions: exactly-once crediting and reconciliation."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Literal

from pymongo.errors import DuplicateKeyError

from imaginer.core.exceptions import InvalidInputError, NotFoundError
from imaginer.core.logging import get_logger
from imaginer.core.pagination import check_page_params, page_offset
from imaginer.db.sequences import next_id
from imaginer.models.transaction import Transaction
from imaginer.models.user import User
from imaginer.services import ledger

log = get_logger(__name__)


@dataclass
class PaymentRecord:
    status: Literal["recorded", "duplicate"]
    transaction: Transaction

    @property
    def duplicate(self) -> bool:
        return self.status == "duplicate"


def credit_key(transaction_id: int) -> str:
    return f"txn:{transaction_id}"


async def record_payment(
    external_payment_id: str,
    amount: Decimal | float,
    plan: str | None,
    credits_granted: int,
    buyer_id: int,
) -> PaymentRecord:
    """
    Store a completed payment once and credit the buyer once.

    A replayed `external_payment_id` returns status "duplicate" with the stored row and
    does not touch the ledger. If the credit step fails the row stays "pending" and the
    error propagates; `reconcile_pending_transactions` finishes it later.
    """
    if not external_payment_id or not external_payment_id.strip():
        raise InvalidInputError("external_payment_id is required")
    if credits_granted < 0:
        raise InvalidInputError("credits_granted must be >= 0", details={"credits_granted": credits_granted})
    # replays are answered before the buyer lookup: the buyer may be gone by now
    existing = await Transaction.find_one(Transaction.external_payment_id == external_payment_id)
    if existing:
        log.info("payment_duplicate", external_payment_id=external_payment_id, transaction_id=existing.id)
        return PaymentRecord(status="duplicate", transaction=existing)
    buyer = await User.get(buyer_id)
    if not buyer:
        raise NotFoundError("Buyer not found")

    txn = Transaction(
        id=await next_id("transactions"),
        external_payment_id=external_payment_id,
        amount=float(amount),
        plan=plan,
        credits_granted=credits_granted,
        buyer_id=buyer.id,
    )
    try:
        await txn.insert()
    except DuplicateKeyError:
        existing = await Transaction.find_one(Transaction.external_payment_id == external_payment_id)
        log.info(
            "payment_duplicate",
            external_payment_id=external_payment_id,
            transaction_id=existing.id if existing else None,
        )
        return PaymentRecord(status="duplicate", transaction=existing)

    log.info(
        "payment_recorded",
        transaction_id=txn.id,
        external_payment_id=external_payment_id,
        buyer_id=buyer.id,
        credits=credits_granted,
    )
    try:
        await apply_transaction_credit(txn)
    except Exception:
        log.exception("payment_credit_failed", transaction_id=txn.id, external_payment_id=external_payment_id)
        raise
    return PaymentRecord(status="recorded", transaction=txn)


async def _finish(txn: Transaction, status: str) -> bool:
    """Move `txn` out of "pending". True only for the caller whose write made the move."""
    fields = {"status": status}
    if status == "credited":
        fields["credited_at"] = datetime.utcnow()
    result = await Transaction.get_motor_collection().update_one(
        {"_id": txn.id, "status": "pending"},
        {"$set": fields},
    )
    if result.modified_count != 1:
        stored = await Transaction.get(txn.id)
        txn.status, txn.credited_at = stored.status, stored.credited_at
        return False
    for field, value in fields.items():
        setattr(txn, field, value)
    return True


async def apply_transaction_credit(txn: Transaction) -> Transaction:
    """Credit the buyer for `txn` if not done yet. Safe to run any number of times."""
    if txn.status != "pending":
        return txn
    if txn.buyer_id is None:
        if await _finish(txn, "orphaned"):
            log.warning("payment_orphaned", transaction_id=txn.id)
        return txn
    try:
        balance = await ledger.adjust_balance(txn.buyer_id, txn.credits_granted, idempotency_key=credit_key(txn.id))
    except NotFoundError:
        if await _finish(txn, "orphaned"):
            log.warning("payment_orphaned", transaction_id=txn.id, buyer_id=txn.buyer_id)
        return txn
    if not await _finish(txn, "credited"):
        # another run (request or reconcile) already finished this row
        return txn
    log.info("payment_credited", transaction_id=txn.id, buyer_id=txn.buyer_id, balance=balance)

    from imaginer.core.audit import log_event
    await log_event(
        txn.buyer_id,
        "payment_credited",
        "transaction",
        str(txn.id),
        {"external_payment_id": txn.external_payment_id, "amount": txn.amount, "credits": txn.credits_granted},
    )
    return txn


async def reconcile_pending_transactions(grace_seconds: int = 60, batch_size: int = 100) -> int:
    """Apply the credit step to transactions left pending; return how many were finished."""
    cutoff = datetime.utcnow() - timedelta(seconds=grace_seconds)
    pending = (
        await Transaction.find(
            Transaction.status == "pending",
            Transaction.created_at <= cutoff,
        )
        .sort("created_at")
        .limit(batch_size)
        .to_list()
    )
    if pending:
        log.info("reconcile_start", count=len(pending))
    done = 0
    for txn in pending:
        try:
            await apply_transaction_credit(txn)
        except Exception:
            # left pending for the next run
            log.exception("reconcile_failed", transaction_id=txn.id)
            continue
        done += 1
    return done


async def list_transactions(buyer_id: int, page: int = 1, limit: int = 20) -> tuple[list[Transaction], int]:
    """Return (transactions for one page, total count) for a buyer, newest first."""
    check_page_params(page, limit)
    total = await Transaction.find(Transaction.buyer_id == buyer_id).count()
    items = (
        await Transaction.find(Transaction.buyer_id == buyer_id)
        .sort([("created_at", -1), ("_id", -1)])
        .skip(page_offset(page, limit))
        .limit(limit)
        .to_list()
    )
    return items, total
