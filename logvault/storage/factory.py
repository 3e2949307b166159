# logvault/storage/factory.py
"""
Factory function for creating cold stores from settings.
"""

import logging

from logvault.config import Settings
from logvault.errors import ConfigurationError
from logvault.storage.base import ColdStore

logger = logging.getLogger(__name__)


def create_cold_store(settings: Settings) -> ColdStore:
    """
    Build the cold store named by STORAGE_PROVIDER.

    Each call returns a new instance; callers inject it into the engine.

    Raises:
        ConfigurationError: Unknown provider or missing bucket
    """
    name = settings.STORAGE_PROVIDER

    if name == "s3":
        from logvault.storage.s3_provider import S3ColdStore

        store = S3ColdStore(
            bucket=settings.S3_BUCKET,
            endpoint_url=settings.S3_ENDPOINT_URL,
            region=settings.S3_REGION,
            cold_storage_class=settings.COLD_STORAGE_CLASS,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )
    elif name == "local":
        from logvault.storage.local_provider import LocalColdStore

        store = LocalColdStore(base_path=settings.LOCAL_STORAGE_PATH)
    else:
        raise ConfigurationError(
            f"Unknown storage provider: {name}. Available: s3, local",
            setting="STORAGE_PROVIDER",
        )

    logger.info(f"Cold store initialized: {store.name}")
    return store
