from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings


class LoggingConfig(BaseSettings):
    """
    Configuration for application logging
    """

    LOG_LEVEL: str = Field(
        description="Logging level, default to INFO. Set to ERROR for production environments.",
        default="INFO",
    )

    LOG_FILE: str | None = Field(
        description="File path for log output.",
        default=None,
    )

    LOG_FILE_MAX_SIZE: PositiveInt = Field(
        description="Maximum file size for file rotation retention, the unit is megabytes (MB)",
        default=20,
    )

    LOG_FILE_BACKUP_COUNT: PositiveInt = Field(
        description="Maximum file backup count file rotation retention",
        default=5,
    )

    LOG_FORMAT: str = Field(
        description="Format string for log messages",
        default=(
            "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] "
            "[%(filename)s:%(lineno)d] %(trace_id)s - %(message)s"
        ),
    )

    LOG_DATEFORMAT: str | None = Field(
        description="Date format string for log timestamps",
        default=None,
    )

    LOG_TZ: str | None = Field(
        description="Timezone for log timestamps (e.g., 'America/New_York')",
        default="UTC",
    )


class HttpConfig(BaseSettings):
    """
    Defaults applied to outgoing JSON requests
    """

    HTTP_REQUEST_DEFAULT_TIMEOUT_MS: PositiveInt = Field(
        description="Timeout in milliseconds for a request that does not set its own",
        default=5000,
    )

    HTTP_REQUEST_SSL_VERIFY: bool = Field(
        description="Enable or disable SSL verification for HTTPS requests",
        default=True,
    )


class FeatureConfig(
    HttpConfig,
    LoggingConfig,
):
    pass
