"""Configuration loader for the Bookshelf reading tracker."""

import os
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Bookshelf"
    version: str = "1.0.0"


class LibraryConfig(BaseModel):
    """Where book documents live."""

    book_folder: str = "Bookshelf"
    file_pattern: str = "*.md"


class ReadingConfig(BaseModel):
    """Reading progress tracking behaviour."""

    default_status: Literal["unread", "reading"] = "unread"
    auto_status_change: bool = True
    auto_update_timestamp: bool = True
    history_heading: str = "## Reading History"
    date_format: str = "%Y-%m-%d"
    datetime_format: str = "%Y-%m-%d %H:%M:%S"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    library: LibraryConfig = Field(default_factory=LibraryConfig)
    reading: ReadingConfig = Field(default_factory=ReadingConfig)


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Environment wins over the file
    book_folder = os.getenv("BOOKSHELF_BOOK_FOLDER")
    if book_folder:
        config.library.book_folder = book_folder
    default_status = os.getenv("BOOKSHELF_DEFAULT_STATUS")
    if default_status in ("unread", "reading"):
        config.reading.default_status = default_status

    return config
