from src.taskmanager.infrastructure.streams.client import StreamsClient
from src.taskmanager.infrastructure.streams.consumer import (
    BatchOutcome,
    StreamEntry,
    StreamsConsumer,
)
from src.taskmanager.infrastructure.streams.publisher import StreamsPublisher
from src.taskmanager.infrastructure.streams.retry import RetryPolicy

__all__ = [
    "StreamsClient",
    "StreamsPublisher",
    "StreamsConsumer",
    "StreamEntry",
    "BatchOutcome",
    "RetryPolicy",
]
