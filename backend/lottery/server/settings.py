"""Lottery server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from lottery.persistence.gateway import STORAGE_KEY
from lottery.session.annotation import DEFAULT_MODEL
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class LotteryServerSettings(BaseSettings):
    model_config = {"env_prefix": "LOTTERY_"}

    log_dir: str = Field(default="backend/logs/lottery", min_length=1)
    data_dir: str = Field(default="backend/data/lottery", min_length=1)
    storage_key: str = Field(default=STORAGE_KEY, pattern=r"^[A-Za-z0-9_.-]+$")
    cors_origins: list[str] = ["http://localhost:5173"]
    rolling_interval_seconds: float = Field(default=0.04, gt=0)
    annotation_model: str = Field(default=DEFAULT_MODEL, min_length=1)
    annotation_timeout_seconds: float = Field(default=10.0, gt=0)

    # Read from API_KEY (not LOTTERY_ANNOTATION_API_KEY), the variable the
    # caption service credentials are deployed under. Unset disables captions.
    annotation_api_key: str | None = Field(default=None, validation_alias="API_KEY")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        env_source = StringListEnvSettingsSource(settings_cls, list_fields=("cors_origins",))
        return init_settings, env_source, dotenv_settings, file_secret_settings
