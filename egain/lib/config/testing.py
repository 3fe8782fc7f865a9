"""Settings overrides for tests.

Not for production code: the exporter always reads its settings from the
environment and the command line.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import egain.lib.config.settings as _settings_module
from egain.lib.config.settings import Settings, _load_settings


def set_settings(settings: Settings | None) -> None:
    """Install settings returned by get_settings(), or None to go back to env."""
    _settings_module._settings_override = settings
    _load_settings.cache_clear()


@contextmanager
def override_settings(**fields: Any) -> Iterator[Settings]:
    """Serve settings built from ``fields`` alone for the duration of a block.

    The .env file is ignored, so only the given fields, environment variables
    and defaults apply. The previous override is restored on exit.
    """
    previous = _settings_module._settings_override
    settings = Settings(_env_file=None, **fields)
    set_settings(settings)
    try:
        yield settings
    finally:
        set_settings(previous)
