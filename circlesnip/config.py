"""Client-side configuration from environment variables (.env supported)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .utils import safe_float

DEFAULT_LICENSE_SERVER = "http://localhost:3000"


def default_cache_path() -> Path:
    return Path.home() / ".config" / "circlesnip" / "license.json"


@dataclass(frozen=True)
class ClientConfig:
    license_server: str = DEFAULT_LICENSE_SERVER
    http_timeout: float = 5.0
    download_dir: Optional[Path] = None
    cache_path: Path = default_cache_path()

    @classmethod
    def from_env(cls) -> "ClientConfig":
        load_dotenv()
        download_dir = os.getenv("CIRCLESNIP_DOWNLOAD_DIR")
        cache_path = os.getenv("CIRCLESNIP_CACHE_PATH")
        return cls(
            license_server=os.getenv("CIRCLESNIP_LICENSE_SERVER", DEFAULT_LICENSE_SERVER).rstrip("/"),
            http_timeout=safe_float(
                os.getenv("CIRCLESNIP_HTTP_TIMEOUT"), "CIRCLESNIP_HTTP_TIMEOUT",
                min_value=0.1, default=5.0,
            ),
            download_dir=Path(download_dir).expanduser() if download_dir else None,
            cache_path=Path(cache_path).expanduser() if cache_path else default_cache_path(),
        )
