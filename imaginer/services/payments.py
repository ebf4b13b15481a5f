"""Payment webhook intake: signature check, event parsing, hand-off to the recorder."""

import json
from decimal import Decimal

from pydantic import BaseModel, Field, ValidationError

from imaginer.core.config import get_settings
from imaginer.core.exceptions import BadRequestError, InvalidInputError
from imaginer.core.logging import get_logger
from imaginer.core.security import verify_webhook_signature
from imaginer.services import transactions as transactions_service

log = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


class PaymentEvent(BaseModel):
    external_payment_id: str = Field(min_length=1)
    amount: Decimal
    plan: str | None = None
    credits_granted: int = Field(ge=0)
    buyer_id: int


def parse_checkout_event(obj: dict) -> PaymentEvent:
    """Map a checkout session object (amount in minor units, details in metadata)."""
    metadata = obj.get("metadata") or {}
    amount_total = obj.get("amount_total") or 0
    try:
        return PaymentEvent(
            external_payment_id=obj.get("id") or "",
            amount=Decimal(amount_total) / 100,
            plan=metadata.get("plan"),
            credits_granted=metadata.get("credits"),
            buyer_id=metadata.get("buyerId"),
        )
    except ValidationError as e:
        raise InvalidInputError("Malformed payment event", details={"errors": e.errors(include_url=False)}) from e


async def handle_webhook(payload: bytes, signature: str | None) -> str:
    """Verify and process one delivery. Returns "recorded", "duplicate" or "ignored"."""
    settings = get_settings()
    verify_webhook_signature(payload, signature, settings.payment_webhook_secret)
    try:
        data = json.loads(payload.decode())
    except ValueError as e:
        raise BadRequestError("Webhook body is not JSON") from e
    event_type = data.get("type")
    if event_type != CHECKOUT_COMPLETED:
        log.info("payment_webhook_ignored", event_type=event_type)
        return "ignored"
    event = parse_checkout_event(data.get("data", {}).get("object", {}))
    record = await transactions_service.record_payment(
        event.external_payment_id,
        event.amount,
        event.plan,
        event.credits_granted,
        event.buyer_id,
    )
    return record.status
