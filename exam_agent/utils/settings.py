from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(default="dev", validation_alias="APP_ENV")

    # Generation provider (OpenAI-compatible chat completions with vision/file input)
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL")
    exam_model: str = Field(default="gpt-4o", validation_alias="EXAM_MODEL")
    generation_timeout_seconds: int = Field(
        # A full exam with TikZ figures routinely takes 30-60s; keep headroom.
        default=180, validation_alias="GENERATION_TIMEOUT_SECONDS"
    )
    generation_max_attempts: int = Field(
        # Transport-level only (connection errors/timeouts); the pipeline never retries.
        default=3, validation_alias="GENERATION_MAX_ATTEMPTS"
    )
    generation_max_tokens: int = Field(default=8192, validation_alias="GENERATION_MAX_TOKENS")

    # Attachments
    max_attachment_bytes: int = Field(
        default=20 * 1024 * 1024, validation_alias="MAX_ATTACHMENT_BYTES"
    )
    preview_url_prefix: str = Field(
        default="/api/v1/exam/preview/blob/", validation_alias="PREVIEW_URL_PREFIX"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    allow_origins: list[str] = Field(default=["*"], validation_alias="ALLOW_ORIGINS")
    log_to_file: bool = Field(default=True, validation_alias="LOG_TO_FILE")
    log_file_path: str = Field(
        default=os.path.join("logs", "exam_agent.log"),
        validation_alias="LOG_FILE_PATH",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
