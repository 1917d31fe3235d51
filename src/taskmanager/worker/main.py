import asyncio
import logging
import signal

from src.setup.logging_config import configure_logging
from src.setup.notification_config import NotificationSettings, build_notification_dispatcher
from src.setup.stream_config import StreamSettings, build_stream_consumer, build_streams_client
from src.setup.worker_config import get_worker_settings

logger = logging.getLogger(__name__)


async def run_worker(stream_settings: StreamSettings, notification_settings: NotificationSettings) -> None:
    client = build_streams_client(stream_settings)
    dispatcher = build_notification_dispatcher(notification_settings)
    consumer = build_stream_consumer(stream_settings, client, dispatcher)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, consumer.request_stop)

    try:
        await consumer.start()
        await consumer.join()
    finally:
        close_dispatcher = getattr(dispatcher, "close", None)
        if close_dispatcher is not None:
            await close_dispatcher()
        await client.close()


def main() -> None:
    settings = get_worker_settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting notification worker")
    asyncio.run(run_worker(StreamSettings(), NotificationSettings()))


if __name__ == "__main__":
    main()
