"""Key-value config store backed by the config_kv table."""

from datetime import datetime, timezone
from typing import Optional

from common.logging_config import get_logger
from gateway.database import get_db_connection

logger = get_logger(__name__)


class ConfigRepository:
    """
    String blob get/put, the only contract the gateway needs from its config store.
    """

    @staticmethod
    def get(key: str) -> Optional[str]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM config_kv WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row["value"] if row is not None else None

    @staticmethod
    def put(key: str, value: str) -> None:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR REPLACE INTO config_kv (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, datetime.now(timezone.utc).isoformat())
            )
            conn.commit()
        logger.info(f"Config key updated [key={key}]")

    @staticmethod
    def put_if_absent(key: str, value: str) -> bool:
        """
        Store value only when key has no entry yet.

        Returns:
            True if the value was written
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO config_kv (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, datetime.now(timezone.utc).isoformat())
            )
            conn.commit()
            return cursor.rowcount > 0
