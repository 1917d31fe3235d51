from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    APP_NAME: str = "task-manager"
    APP_VERSION: str = "0.1.0"
    RUN_CONSUMER: bool = True
    CREATE_SCHEMA: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", extra="ignore")
