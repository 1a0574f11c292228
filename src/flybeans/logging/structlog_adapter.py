# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""StructlogAdapter — default LoggingPort implementation using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from flybeans.core.config import Config


class StructlogAdapter:
    """Logging adapter backed by structlog, configured from ``flybeans.logging``.

    ``flybeans.logging.level.root`` sets the root level; every other key under
    ``flybeans.logging.level`` is a logger name (``flybeans.container.factory``
    for instance) mapped to its own level.
    """

    def __init__(self, stream: Any = None) -> None:
        self._stream = stream or sys.stdout
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    @property
    def root_level(self) -> str:
        return self._root_level

    @property
    def format(self) -> str:
        return self._format

    def configure(self, config: Config) -> None:
        """Read levels and renderer from ``flybeans.logging`` and install them."""
        level_section = self._flatten(config.get_section("flybeans.logging.level"))
        self._root_level = str(level_section.pop("root", "INFO")).upper()
        self._module_levels = {k: str(v).upper() for k, v in level_section.items()}
        self._format = str(config.get("flybeans.logging.format", "console")).lower()

        self._install_processors()
        self._apply_module_levels()

    def get_logger(self, name: str) -> Any:
        """A structlog logger bound to *name*."""
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Change one stdlib logger's level; unknown level names fall back to INFO."""
        log_level = getattr(logging, level.upper(), logging.INFO)
        logging.getLogger(name).setLevel(log_level)

    @classmethod
    def _flatten(cls, section: dict[str, Any], prefix: str = "") -> dict[str, Any]:
        # YAML nests dotted logger names: {"flybeans": {"container": "DEBUG"}}
        flat: dict[str, Any] = {}
        for key, value in section.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            if isinstance(value, dict):
                flat.update(cls._flatten(value, name))
            else:
                flat[name] = value
        return flat

    def _install_processors(self) -> None:
        log_level = getattr(logging, self._root_level, logging.INFO)

        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]

        if self._format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            stream=self._stream,
            level=log_level,
            force=True,
        )

    def _apply_module_levels(self) -> None:
        for logger_name, level in self._module_levels.items():
            self.set_level(logger_name, level)
