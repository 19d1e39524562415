from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional

from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

DEFAULT_EXCLUDES = (
    ".lambdaignore",
    "function.json",
    "function.jsonnet",
    ".git/*",
    ".terraform/*",
    "terraform.tfstate",
)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")

@dataclass(frozen=True)
class Settings:
    src: str = os.getenv("FNBUNDLE_SRC", ".")
    dest: str = os.getenv("FNBUNDLE_DEST", "function.zip")
    exclude_file: str = os.getenv("FNBUNDLE_EXCLUDE_FILE", ".lambdaignore")
    follow_symlinks: bool = _env_flag("FNBUNDLE_FOLLOW_SYMLINKS", "true")

    s3_bucket: str = os.getenv("FNBUNDLE_S3_BUCKET", "").strip()
    s3_key: str = os.getenv("FNBUNDLE_S3_KEY", "").strip()
    function_name: str = os.getenv("FNBUNDLE_FUNCTION_NAME", "").strip()
    aws_region: str = os.getenv("AWS_REGION", "").strip()

    log_level: str = os.getenv("FNBUNDLE_LOG_LEVEL", "INFO").strip().upper()

settings = Settings()

def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)

def read_exclude_file(path: str) -> list[str]:
    """Patterns from an ignore file, one per line. Blank lines and '#' comments are dropped."""
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except FileNotFoundError:
        return []
    except OSError as e:
        raise ConfigError(f"failed to read exclude file {path}: {e}") from e
    patterns = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns

def load_excludes(exclude_file: Optional[str] = None, extra: Optional[Iterable[str]] = None) -> list[str]:
    patterns = list(DEFAULT_EXCLUDES)
    patterns.extend(read_exclude_file(exclude_file or settings.exclude_file))
    if extra:
        patterns.extend(p for p in extra if p)
    return patterns
