"""Init-logik för paketet *tasks*.

• Laddar .env innan extractor/assets/materializer läser VIEWPORT_*,
  IMG_FETCH_*, FALLBACK_FONT_FAMILY m.fl. vid import (Celery-worker och CLI).
• H2F_ENV_FILE pekar ut en specifik fil; annars söks .env uppåt från cwd
  och till sist i repo-roten.
• Redan satta miljövariabler vinner alltid över filen.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

_REPO_ROOT = Path(__file__).resolve().parents[2]


def env_file_path() -> Optional[Path]:
    explicit = os.getenv("H2F_ENV_FILE")
    if explicit:
        return Path(explicit)
    found = find_dotenv(usecwd=True)
    if found:
        return Path(found)
    fallback = _REPO_ROOT / ".env"
    return fallback if fallback.is_file() else None


def load_env() -> Optional[Path]:
    path = env_file_path()
    if path is not None:
        load_dotenv(path, override=False)
    return path


load_env()
