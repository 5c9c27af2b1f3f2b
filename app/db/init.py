import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import get_settings
from app.models.audit_log import AuditLog
from app.models.loyalty_points import LoyaltyPoints
from app.models.processed_order import ProcessedOrder

DOCUMENT_MODELS = [
    LoyaltyPoints,
    ProcessedOrder,
    AuditLog,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def create_client(uri: str) -> AsyncIOMotorClient:
    # Atlas in Docker: tlsCAFile + tlsDisableOCSPEndpointCheck avoid TLSV1_ALERT_INTERNAL_ERROR
    kwargs = {}
    if _use_tls(uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    return AsyncIOMotorClient(uri, **kwargs)


async def init_db(client=None) -> None:
    """Bind document models (and their unique indexes) to the configured database.

    ``client`` overrides the Motor client built from settings; tests pass an in-memory one.
    """
    settings = get_settings()
    if client is None:
        client = create_client(settings.mongodb_uri)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
