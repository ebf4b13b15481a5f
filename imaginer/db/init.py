import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from imaginer.core.config import get_settings
from imaginer.models.audit_log import AuditLog
from imaginer.models.image import Image
from imaginer.models.sequence import Sequence
from imaginer.models.transaction import Transaction
from imaginer.models.user import User

DOCUMENT_MODELS = [
    User,
    Transaction,
    Image,
    Sequence,
    AuditLog,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def create_client() -> AsyncIOMotorClient:
    settings = get_settings()
    kwargs = {}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    return AsyncIOMotorClient(settings.mongodb_uri, **kwargs)


async def init_db(client=None):
    """Bind document models to the configured database and return the client.

    Called once at process start; the caller owns the returned client and closes
    it on shutdown. Tests pass an in-memory client.
    """
    settings = get_settings()
    if client is None:
        client = create_client()
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    return client
