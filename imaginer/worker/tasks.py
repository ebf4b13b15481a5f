"""ARQ job definitions."""

from typing import Any
from urllib.parse import urlparse

from arq.connections import RedisSettings

from imaginer.core.config import get_settings
from imaginer.core.logging import configure_logging, get_logger
from imaginer.services.transactions import reconcile_pending_transactions

log = get_logger(__name__)


async def reconcile_transactions(ctx: dict[str, Any]) -> int:
    """Credit payments whose credit step did not complete in the request that recorded them."""
    s = get_settings()
    done = await reconcile_pending_transactions(
        grace_seconds=s.reconcile_grace_seconds,
        batch_size=s.reconcile_batch_size,
    )
    if done:
        log.info("job_done", job="reconcile_transactions", credited=done)
    return done


async def startup(ctx: dict) -> None:
    from imaginer.db.init import init_db
    configure_logging(debug=get_settings().debug)
    ctx["mongo_client"] = await init_db()


async def shutdown(ctx: dict) -> None:
    client = ctx.get("mongo_client")
    if client is not None:
        client.close()


def get_redis_settings() -> RedisSettings:
    s = get_settings()
    u = urlparse(s.redis_url)
    return RedisSettings(
        host=u.hostname or "localhost",
        port=u.port or 6379,
        password=u.password,
        database=int(u.path.lstrip("/")) if u.path.lstrip("/") else 0,
    )
