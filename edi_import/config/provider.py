from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from pathlib import Path

from .loader import AppConfig, ConfigError, config_paths, current_environment, load_config

"""Current-configuration provider with reload on file change.

Consumers keep a reference to the provider and call current() for every
operation instead of caching the AppConfig, so an edited config file is
picked up without restarting the process. A reload that fails keeps the
last good configuration.
"""

__all__ = [
    "ConfigProvider",
]

logger = logging.getLogger(__name__)

_Stamp = tuple[tuple[str, float | None], ...]


class ConfigProvider:
    def __init__(self, load: Callable[[], AppConfig], watch: Sequence[Path] = ()) -> None:
        self._load = load
        self._watch = list(watch)
        self._lock = threading.Lock()
        self._config: AppConfig | None = None
        self._stamp: _Stamp | None = None

    @classmethod
    def from_file(cls, path: Path, environment: str | None = None) -> ConfigProvider:
        env = environment or current_environment()
        return cls(lambda: load_config(path, environment), watch=config_paths(path, env))

    @classmethod
    def static(cls, config: AppConfig) -> ConfigProvider:
        return cls(lambda: config)

    def _current_stamp(self) -> _Stamp:
        stamp = []
        for p in self._watch:
            try:
                stamp.append((str(p), p.stat().st_mtime))
            except OSError:
                stamp.append((str(p), None))
        return tuple(stamp)

    def current(self) -> AppConfig:
        with self._lock:
            stamp = self._current_stamp()
            if self._config is None:
                self._config = self._load()
                self._stamp = stamp
            elif stamp != self._stamp:
                try:
                    self._config = self._load()
                    logger.info("configuration reloaded")
                except ConfigError as e:
                    logger.warning(f"configuration reload failed, keeping previous settings: {e}")
                self._stamp = stamp
            return self._config
