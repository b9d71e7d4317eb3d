from __future__ import annotations

import logging

from .base import ParticipantRecord, PersistenceError, PersistenceGateway, RoomRecord


logger = logging.getLogger(__name__)

__all__ = [
    "ParticipantRecord",
    "PersistenceError",
    "PersistenceGateway",
    "RoomRecord",
    "create_gateway",
]


def create_gateway(config: dict) -> PersistenceGateway:
    database_url = config.get("DATABASE_URL", "")
    if database_url:
        from .sql import SqlGateway

        logger.info("Using SQL persistence")
        return SqlGateway(database_url, echo=config.get("SQL_DEBUG", False))

    from .memory import MemoryGateway

    logger.info("DATABASE_URL not set, using in-memory persistence")
    return MemoryGateway()
