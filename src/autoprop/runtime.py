"""
autoprop.runtime  ──  process-wide settings singleton.

Usage pattern in user code
--------------------------
    from autoprop import AutoProp

    AutoProp.init(env_file=".env", log_level="DEBUG")

Nothing has to be initialised: the first `AutoProp.settings()` call builds
defaults from the environment.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, ClassVar, Optional

from .config import Settings

logger = logging.getLogger(__name__)


class AutoProp:
    """Holds the active `Settings` for every record type in the process."""

    _settings: ClassVar[Optional[Settings]] = None

    # ---------- one-shot initialiser ----------
    @classmethod
    def init(cls, *, env_file: str | Path | None = None, **overrides: Any) -> Settings:
        settings = Settings.from_env(env_file, **overrides)
        cls._install(settings)
        logger.debug("autoprop initialised: %s", settings)
        return settings

    # ---------- convenience helpers ----------
    @classmethod
    def settings(cls) -> Settings:
        if cls._settings is None:
            cls._install(Settings.from_env())
        return cls._settings  # type: ignore[return-value]

    @classmethod
    def reset(cls) -> None:
        cls._settings = None

    @classmethod
    def _install(cls, settings: Settings) -> None:
        cls._settings = settings
        logging.getLogger("autoprop").setLevel(settings.log_level)
