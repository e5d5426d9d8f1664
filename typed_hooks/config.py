from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Process-wide registry defaults.

    Priority (highest to lowest):
    1. Environment variables (TYPED_HOOKS_ prefix)
    2. .env file
    3. Default values

    Each HookRegistry reads these once at construction; explicit constructor
    arguments win over them.
    """

    model_config = SettingsConfigDict(
        env_prefix="TYPED_HOOKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    VALIDATE_SIGNATURES: bool = Field(
        default=True,
        description="Check callback arity against the schema at registration time",
    )
    LOG_DISPATCH: bool = Field(
        default=False,
        description="Emit a debug line for every dispatch",
    )


settings = Settings()
