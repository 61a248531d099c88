# -*- coding: utf-8 -*-
"""Location: ./restroute/services/logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Logging Service.

Thin wrapper around the standard library ``logging`` module. The root logger
is configured once from settings; callers ask for named loggers and use them
as a fire-and-forget sink.
"""

# Standard
import logging
from typing import Dict, Optional

# First-Party
from restroute.config import settings


class LoggingService:
    """Hands out configured loggers.

    Examples:
        >>> service = LoggingService()
        >>> service.get_logger("pipeline").name
        'restroute.pipeline'
        >>> service.get_logger("restroute.registry").name
        'restroute.registry'
    """

    _configured: bool = False

    def __init__(self, level: Optional[str] = None, fmt: Optional[str] = None):
        """Initialize the logging service.

        Args:
            level: Log level name, defaults to ``settings.log_level``
            fmt: Log format, defaults to ``settings.log_format``
        """
        self.level = (level or settings.log_level).upper()
        self.fmt = fmt or settings.log_format
        self._loggers: Dict[str, logging.Logger] = {}

    def configure(self) -> None:
        """Configure the root logger once per process."""
        if LoggingService._configured:
            return
        logging.basicConfig(level=getattr(logging, self.level, logging.INFO), format=self.fmt)
        LoggingService._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        """Return a logger namespaced under ``restroute``.

        Args:
            name: Logger name

        Returns:
            logging.Logger: Named logger
        """
        if not name.startswith("restroute"):
            name = f"restroute.{name.replace(' ', '_')}"
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]

    async def initialize(self) -> None:
        """Configure logging at application startup."""
        self.configure()
        self.get_logger("logging_service").debug(f"Logging configured at level {self.level}")

    async def shutdown(self) -> None:
        """Flush handlers on shutdown."""
        for handler in logging.getLogger().handlers:
            handler.flush()
