from typing import Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CompilerSettings(BaseSettings):
    """
    dfscript compiler configuration.
    Priority: Environment Variables (DFC_*) > .env file > Defaults.
    """

    DEFAULT_TARGET: str = Field(
        default="Selection",
        description="Target written on actions and player/entity/game conditionals",
    )
    PROCESS_TEMPLATE_PATH: Optional[str] = Field(
        default=None,
        description="Override for the default item payload attached to process calls",
    )
    COMPACT_JSON: bool = Field(default=True, description="Emit JSON without whitespace")
    DEBUG: bool = Field(default=False, description="Enable debug logging")

    model_config = SettingsConfigDict(
        env_prefix="DFC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value with precedence."""
        return getattr(self, key, default)


# Singleton instance
settings = CompilerSettings()
