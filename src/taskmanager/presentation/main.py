from fastapi import FastAPI

from src.setup.api_config import ApiSettings
from src.setup.app_config import build_application
from src.setup.db_config import get_database_settings
from src.setup.logging_config import configure_logging
from src.setup.notification_config import NotificationSettings
from src.setup.stream_config import StreamSettings
from src.taskmanager.presentation.routes import router as tasks_router

settings = ApiSettings()
configure_logging(settings.LOG_LEVEL)
application = build_application(
    get_database_settings(),
    StreamSettings(),
    NotificationSettings(),
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Task CRUD API with status change notifications",
)
app.state.task_service = application.task_service


async def _startup() -> None:
    if settings.CREATE_SCHEMA:
        await application.orm.create_schema()
    if settings.RUN_CONSUMER:
        await application.consumer.start()


async def _shutdown() -> None:
    await application.close()


app.add_event_handler("startup", _startup)
app.add_event_handler("shutdown", _shutdown)

app.include_router(tasks_router, prefix="")
