"""
Settings read from `AUTOPROP_*` environment variables (and `.env` files).
"""

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

ENV_PREFIX = "AUTOPROP_"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseModel):
    model_config = {"frozen": True}

    strict_validation: bool = True  # pydantic strict mode for setters
    precheck_associations: bool = True  # check reciprocal calls before mutating
    log_level: LogLevel = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_env(
        cls, env_file: str | Path | None = None, **overrides: object
    ) -> "Settings":
        """
        Build settings from the environment.

        `env_file` is loaded first with python-dotenv; variables already set in
        the process environment win. Keyword overrides win over both.
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls.model_validate(values)
