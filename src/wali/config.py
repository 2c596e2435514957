"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, template_dir="views")
    """

    # Errors: when True, 500 responses carry the traceback
    debug: bool = False

    # Logging
    log_level: str = "info"

    # Templates (Controller.render, requires the ``templates`` extra)
    template_dir: str | Path = "templates"
    autoescape: bool = True

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Build a config from ``APP_*`` environment variables.

        Recognised keys: ``APP_DEBUG``, ``APP_LOG_LEVEL``,
        ``APP_TEMPLATE_DIR``, ``APP_MAX_CONTENT_LENGTH``. Missing keys keep
        their defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            debug=env.get("APP_DEBUG", "").lower() in _TRUTHY,
            log_level=env.get("APP_LOG_LEVEL", defaults.log_level).lower(),
            template_dir=env.get("APP_TEMPLATE_DIR", str(defaults.template_dir)),
            max_content_length=int(
                env.get("APP_MAX_CONTENT_LENGTH", defaults.max_content_length)
            ),
        )
