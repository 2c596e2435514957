"""Kida environment setup for ``Controller.render``.

The environment is created lazily from an ``AppConfig`` and cached per
(template_dir, autoescape, debug), so every request served by one app
shares one environment. Requires the ``templates`` extra.
"""

import threading
from pathlib import Path
from typing import Any

from wali.config import AppConfig
from wali.errors import ConfigurationError

_envs: dict[tuple[str, bool, bool], Any] = {}
_envs_lock = threading.Lock()


def create_environment(config: AppConfig) -> Any:
    """Create a kida Environment from app configuration."""
    try:
        from kida import Environment, FileSystemLoader
    except ImportError:
        msg = (
            "Controller.render requires the 'kida' template engine. "
            "Install it with: pip install wali[templates]"
        )
        raise ConfigurationError(msg) from None

    return Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )


def get_environment(config: AppConfig) -> Any:
    """Return the cached environment for *config*, creating it once."""
    key = (str(Path(config.template_dir)), config.autoescape, config.debug)
    env = _envs.get(key)
    if env is not None:
        return env
    with _envs_lock:
        env = _envs.get(key)
        if env is None:
            env = create_environment(config)
            _envs[key] = env
    return env


def render_template(config: AppConfig, name: str, context: dict[str, Any]) -> str:
    """Render template *name* to a string."""
    template = get_environment(config).get_template(name)
    return template.render(context)
