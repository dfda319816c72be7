from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

HERE = Path(__file__).resolve().parent
DEFAULT_DATA_DIR = HERE / "datasets"

BRANCHES_RESOURCE = "Toronto Library Branch Info 2024.json"
VISITS_RESOURCE = "Library Visits Annual by Branch.json"
EVENTS_RESOURCE = "Toronto Library Events Feed.json"

# Nominatim requires a User-Agent with a contact address
DEFAULT_USER_AGENT = "TPLBrowser/1.0 (your_email@example.com)"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class LibraryConfig:
    data_dir: Path
    branches_resource: str
    visits_resource: str
    events_resource: str

    # Worker pool used by the async loader (one thread per dataset is enough)
    max_workers: int

    # False switches the loader to skip-and-report on bad records
    strict_decoding: bool

    log_level: str

    geocoder_user_agent: str

    def resource_path(self, name: str) -> Path:
        return self.data_dir / name


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        return default


def _getbool(name: str, default: bool) -> bool:
    raw = _getenv(name)
    if raw is None:
        return default
    if raw.lower() in _TRUTHY:
        return True
    if raw.lower() in _FALSY:
        return False
    logger.warning("Ignoring unrecognised %s=%r, using %s", name, raw, default)
    return default


def get_config() -> LibraryConfig:
    """
    Centralized config: this is the ONLY place env vars are read.
    - Loads `.env` if present (local dev)
    - Falls back to the bundled datasets/ folder
    """
    load_dotenv(override=False)

    return LibraryConfig(
        data_dir=Path(_getenv("LIBRARY_DATA_DIR") or DEFAULT_DATA_DIR),
        branches_resource=_getenv("LIBRARY_BRANCHES_FILE", BRANCHES_RESOURCE) or BRANCHES_RESOURCE,
        visits_resource=_getenv("LIBRARY_VISITS_FILE", VISITS_RESOURCE) or VISITS_RESOURCE,
        events_resource=_getenv("LIBRARY_EVENTS_FILE", EVENTS_RESOURCE) or EVENTS_RESOURCE,
        max_workers=_getint("LIBRARY_MAX_WORKERS", 3),
        strict_decoding=_getbool("LIBRARY_STRICT_DECODING", True),
        log_level=(_getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
        geocoder_user_agent=_getenv("GEOCODER_USER_AGENT") or DEFAULT_USER_AGENT,
    )


def configure_logging(cfg: LibraryConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
