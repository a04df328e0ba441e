"""Objects shared by CLI commands."""

from datetime import datetime
from typing import Optional

from rich.console import Console
from sqlalchemy.orm import sessionmaker

from ..config import Settings
from ..db import create_db_engine, create_session_factory
from ..logging import ConsoleLogger, FileLogger, Logger, LogLevel, NullLogger

console = Console()


def load_settings(database_url: Optional[str] = None) -> Settings:
    settings = Settings.from_env()
    if database_url:
        settings.database_url = database_url
    return settings


def open_database(settings: Settings) -> sessionmaker:
    return create_session_factory(create_db_engine(settings.database_url))


def event_logger(settings: Settings, verbose: bool = False) -> Logger:
    """Console events with ``--verbose``, JSON lines when a log file is set, else nothing."""
    if verbose:
        return ConsoleLogger(min_level=LogLevel.DEBUG if settings.log_level == "DEBUG" else LogLevel.INFO)
    if settings.log_file:
        return FileLogger(settings.log_file)
    return NullLogger()


def format_timestamp(moment: Optional[datetime]) -> str:
    return moment.strftime("%Y-%m-%d %H:%M") if moment else "-"
