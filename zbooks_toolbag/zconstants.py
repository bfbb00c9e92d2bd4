# zbooks_toolbag/zconstants.py
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Shared machine-wide settings first, then a project-local .env.
load_dotenv(Path.home() / "resources" / ".env_local")
load_dotenv()

# Environment variable names
MONGO_URI_ENV_VARS = ("MONGODB_ATLAS_URI", "MONGO_URI")
MONGO_DATABASE_NAME_ENV = "MONGO_DATABASE_NAME"
BOOKS_COLLECTION_ENV = "BOOKS_COLLECTION"
SERVER_SELECTION_TIMEOUT_ENV = "MONGO_SERVER_SELECTION_TIMEOUT_MS"
TIMEOUT_ENV = "MONGO_TIMEOUT_MS"
LOG_LEVEL_ENV = "LOG_LEVEL"

# Defaults
DEFAULT_MONGO_URI = "mongodb://127.0.0.1:27017"
DEFAULT_DATABASE_NAME = "test"
DEFAULT_BOOKS_COLLECTION = "books"
DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 5000
DEFAULT_LOG_LEVEL = "INFO"


def get_mongo_uri() -> str:
    """
    Return the configured connection string.

    MONGODB_ATLAS_URI wins over MONGO_URI; when neither is set the local
    default is used.
    """
    for name in MONGO_URI_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return DEFAULT_MONGO_URI


def get_int_env(name: str, default: Optional[int] = None) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from None
