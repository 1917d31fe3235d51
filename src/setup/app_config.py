from __future__ import annotations

import logging
from dataclasses import dataclass

from src.setup.db_config import DatabaseSettings
from src.setup.notification_config import NotificationSettings, build_notification_dispatcher
from src.setup.stream_config import (
    StreamSettings,
    build_stream_consumer,
    build_stream_publisher,
    build_streams_client,
)
from src.taskmanager.application.notifications import NotificationDispatcher
from src.taskmanager.application.services import TaskService
from src.taskmanager.infrastructure.postgres.orm import PostgresOrm
from src.taskmanager.infrastructure.postgres.repositories import PostgresTaskRepository
from src.taskmanager.infrastructure.streams.client import StreamsClient
from src.taskmanager.infrastructure.streams.consumer import StreamsConsumer
from src.taskmanager.infrastructure.streams.publisher import StreamsPublisher

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Everything the API process owns, wired once at startup."""

    orm: PostgresOrm
    task_service: TaskService
    publisher: StreamsPublisher
    publisher_client: StreamsClient
    consumer: StreamsConsumer
    consumer_client: StreamsClient
    dispatcher: NotificationDispatcher

    async def close(self) -> None:
        await self.consumer.stop()
        await self.publisher.close()
        close_dispatcher = getattr(self.dispatcher, "close", None)
        if close_dispatcher is not None:
            await close_dispatcher()
        await self.consumer_client.close()
        await self.publisher_client.close()
        await self.orm.dispose()
        logger.info("Application resources released")


def build_application(
    db_settings: DatabaseSettings,
    stream_settings: StreamSettings,
    notification_settings: NotificationSettings,
) -> Application:
    """Compose store, service, publisher and consumer in dependency order."""
    orm = PostgresOrm(db_settings.DATABASE_URL, echo=db_settings.DB_ECHO)
    repository = PostgresTaskRepository(orm)

    # The consumer blocks on XREADGROUP, so it gets its own connection pool.
    publisher_client = build_streams_client(stream_settings, for_publisher=True)
    publisher = build_stream_publisher(stream_settings, publisher_client)
    task_service = TaskService(repository, publisher)

    consumer_client = build_streams_client(stream_settings)
    dispatcher = build_notification_dispatcher(notification_settings)
    consumer = build_stream_consumer(stream_settings, consumer_client, dispatcher)

    return Application(
        orm=orm,
        task_service=task_service,
        publisher=publisher,
        publisher_client=publisher_client,
        consumer=consumer,
        consumer_client=consumer_client,
        dispatcher=dispatcher,
    )
