import logging
from typing import AsyncGenerator
from fastapi import FastAPI
from contextlib import asynccontextmanager

from session import SessionSettings
from session.backends.mongo_backend import MongoBackend
from session.backends.sql_backend import SQLBackend
from .redis_client import close_redis_clients

logger = logging.getLogger("service.lifecycle")


def make_lifespan(settings: SessionSettings):
    """Build the app lifespan that prepares and releases the session backend's resources."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        backend = settings.store_adapter

        if isinstance(backend, SQLBackend):
            try:
                await backend.init_schema()
                logger.info("Session table ready")
            except Exception as e:
                # Sessions degrade to local ones until the database is reachable
                logger.error(f"Failed to initialize session table: {e}")

        yield

        if isinstance(backend, SQLBackend):
            await backend.dispose()
        elif isinstance(backend, MongoBackend):
            backend.collection.database.client.close()
        await close_redis_clients()
        logger.info("Session backend resources released")

    return lifespan
