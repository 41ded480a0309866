from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Diagram settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PY_FORTUNE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Tolerances
    epsilon: float = Field(
        default=1e-1,
        gt=0,
        description="Tolerance for break point placement, simultaneous collapse and cell closure",
    )
    circle_epsilon: float = Field(
        default=2e-12,
        gt=0,
        description="Orientation threshold below which a beach section triplet converges",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")


# Instantiate singleton settings object
settings = Settings()
