"""Ownership checks for resource mutations."""

from enum import Enum

from imaginer.core.exceptions import NotOwnerError
from imaginer.core.logging import get_logger

log = get_logger(__name__)


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


def authorize(actor_id: int, owner_id: int | None) -> Decision:
    if owner_id is None:
        return Decision.DENY
    return Decision.ALLOW if actor_id == owner_id else Decision.DENY


def require_owner(actor_id: int, owner_id: int | None, resource: str = "resource", resource_id: int | None = None) -> None:
    """Raise NotOwnerError unless `actor_id` owns the resource. Call before any write."""
    if authorize(actor_id, owner_id) is Decision.DENY:
        log.warning("ownership_denied", actor_id=actor_id, owner_id=owner_id, resource=resource, resource_id=resource_id)
        raise NotOwnerError(f"You do not own this {resource}")
