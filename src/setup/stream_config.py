from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from src.taskmanager.application.notifications import NotificationDispatcher
from src.taskmanager.infrastructure.streams.client import StreamsClient
from src.taskmanager.infrastructure.streams.consumer import (
    GROUP_NOTIFICATIONS,
    STREAM_TASK_STATUS,
    StreamsConsumer,
    consumer_name,
)
from src.taskmanager.infrastructure.streams.publisher import StreamsPublisher
from src.taskmanager.infrastructure.streams.retry import RetryPolicy


class StreamSettings(BaseSettings):
    """Configuration for Redis Streams consumer/publisher wiring."""
    REDIS_URL: str = "redis://redis:6379/0"
    STREAM_NAME: str = STREAM_TASK_STATUS
    DEFAULT_STREAM: str | None = "task-ids"
    GROUP_NAME: str = GROUP_NOTIFICATIONS
    CONSUMER_NAME: str | None = None
    BLOCK_MS: int = 5000
    COUNT: int = 1
    SESSION_TIMEOUT_MS: int = 15000
    MAX_BATCH_BYTES: int = 300000
    IDEMPOTENT_PUBLISH: bool = False
    RECLAIM_PENDING: bool = False
    RETRY_INTERVAL_MS: int = 1000
    MAX_RETRIES: int = 3
    SKIP_EXHAUSTED_BATCHES: bool = True
    DEAD_LETTER_STREAM: str | None = None
    STREAM_MAXLEN: int | None = None

    model_config = ConfigDict(env_file=".env", extra="ignore")


def build_streams_client(settings: StreamSettings, *, for_publisher: bool = False) -> StreamsClient:
    """Create a streams client; publisher clients never resend when idempotence is on."""
    retry_on_timeout = not (for_publisher and settings.IDEMPOTENT_PUBLISH)
    return StreamsClient(settings.REDIS_URL, retry_on_timeout=retry_on_timeout)


def build_retry_policy(settings: StreamSettings) -> RetryPolicy:
    return RetryPolicy(
        interval_s=settings.RETRY_INTERVAL_MS / 1000,
        max_retries=settings.MAX_RETRIES,
        skip_exhausted=settings.SKIP_EXHAUSTED_BATCHES,
    )


def build_stream_publisher(settings: StreamSettings, client: StreamsClient) -> StreamsPublisher:
    """Create the status change publisher bound to the configured streams."""
    return StreamsPublisher(
        client,
        settings.STREAM_NAME,
        default_stream=settings.DEFAULT_STREAM,
        maxlen=settings.STREAM_MAXLEN,
    )


def build_stream_consumer(
    settings: StreamSettings,
    client: StreamsClient,
    dispatcher: NotificationDispatcher,
) -> StreamsConsumer:
    """Create a streams consumer that hands status changes to ``dispatcher``."""
    # Consumer name is generated when not provided so multiple instances can join the group.
    name = settings.CONSUMER_NAME or consumer_name()
    return StreamsConsumer(
        client,
        stream=settings.STREAM_NAME,
        group=settings.GROUP_NAME,
        consumer_name=name,
        dispatcher=dispatcher,
        retry_policy=build_retry_policy(settings),
        block_ms=settings.BLOCK_MS,
        count=settings.COUNT,
        max_batch_bytes=settings.MAX_BATCH_BYTES,
        reclaim_pending=settings.RECLAIM_PENDING,
        reclaim_idle_ms=settings.SESSION_TIMEOUT_MS,
        dead_letter_stream=settings.DEAD_LETTER_STREAM,
    )
