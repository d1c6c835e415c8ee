"""Loads the shard list and admin credential from the config store."""

import json
from typing import List

from pydantic import ValidationError

from common.constants import ADMIN_PASSWORD_CONFIG_KEY, SHARDS_CONFIG_KEY
from common.logging_config import get_logger
from gateway.config import (
    BOOTSTRAP_ADMIN_PASSWORD,
    BOOTSTRAP_SHARDS,
    DEFAULT_ADMIN_PASSWORD,
)
from gateway.repositories.config_repository import ConfigRepository
from gateway.schemas.shards import ShardDescriptor
from gateway.types import GatewayConfig

logger = get_logger(__name__)


def parse_shard_document(raw: str) -> List[ShardDescriptor]:
    """
    Parse the stored shard-list JSON.

    An unreadable document yields an empty list; individual entries that
    fail validation are skipped.

    Args:
        raw: JSON text from the config store

    Returns:
        Shards in document order
    """
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Shard list is not valid JSON, treating as empty: {e}")
        return []

    if not isinstance(document, list):
        logger.warning("Shard list is not a JSON array, treating as empty")
        return []

    shards = []
    seen_ids = set()
    for index, entry in enumerate(document):
        try:
            shard = ShardDescriptor.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping invalid shard entry at index {index}: {e.error_count()} error(s)")
            continue

        if shard.id in seen_ids:
            logger.warning(f"Skipping duplicate shard id {shard.id}")
            continue

        seen_ids.add(shard.id)
        shards.append(shard)

    return shards


def load_gateway_config(store=ConfigRepository) -> GatewayConfig:
    """
    Fetch a fresh configuration snapshot.

    Args:
        store: Object exposing get(key) -> Optional[str]

    Returns:
        GatewayConfig with the current shard list and admin password
    """
    raw_shards = store.get(SHARDS_CONFIG_KEY)
    shards = parse_shard_document(raw_shards) if raw_shards else []

    admin_password = store.get(ADMIN_PASSWORD_CONFIG_KEY) or DEFAULT_ADMIN_PASSWORD

    return GatewayConfig(shards=tuple(shards), admin_password=admin_password)


def seed_config_store(store=ConfigRepository) -> None:
    """
    Copy bootstrap values from the environment into an empty config store.
    """
    if BOOTSTRAP_SHARDS:
        if store.put_if_absent(SHARDS_CONFIG_KEY, BOOTSTRAP_SHARDS):
            logger.info("Seeded shard list from GATEWAY_SHARDS")

    if BOOTSTRAP_ADMIN_PASSWORD:
        if store.put_if_absent(ADMIN_PASSWORD_CONFIG_KEY, BOOTSTRAP_ADMIN_PASSWORD):
            logger.info("Seeded admin password from GATEWAY_ADMIN_PASSWORD")
