#!/usr/bin/env python3
"""Logging configuration

Root logger setup for the platform process. Environment variables:
LOG_LEVEL, LOG_FORMAT, LOG_FILE, ACCESS_LOG.
"""
import logging
import os
from dataclasses import dataclass

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING unless LOG_LEVEL is DEBUG
QUIET_LOGGERS = ("asyncpg", "httpx", "multipart")


@dataclass
class LoggingConfig:
    """Root logger and uvicorn access log settings"""
    log_level: str = "INFO"
    log_format: str = DEFAULT_FORMAT
    log_file: str = ""
    access_log: bool = True

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", DEFAULT_FORMAT),
            log_file=os.getenv("LOG_FILE", ""),
            access_log=os.getenv("ACCESS_LOG", "true").lower() == "true",
        )

    def configure(self) -> None:
        """Install stream (and optional file) handlers on the root logger"""
        handlers = [logging.StreamHandler()]
        if self.log_file:
            handlers.append(logging.FileHandler(self.log_file))
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        logging.basicConfig(level=level, format=self.log_format, handlers=handlers)

        if level > logging.DEBUG:
            for name in QUIET_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)
