"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

DEFAULT_STORE_PATH = "credentials.json"
DEFAULT_VKEY_PATH = "verification_key.json"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _split_origins(value: str) -> Tuple[str, ...]:
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    store_path: str = DEFAULT_STORE_PATH
    verification_key_path: str = DEFAULT_VKEY_PATH
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)
    host: str = "127.0.0.1"
    port: int = 4000

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return Settings(
            store_path=env.get("ZKLOGIN_STORE_PATH", DEFAULT_STORE_PATH),
            verification_key_path=env.get("ZKLOGIN_VKEY_PATH", DEFAULT_VKEY_PATH),
            log_level=env.get("ZKLOGIN_LOG_LEVEL", "INFO").upper(),
            cors_origins=_split_origins(env.get("ZKLOGIN_CORS_ORIGINS", "*")),
            host=env.get("ZKLOGIN_HOST", "127.0.0.1"),
            port=int(env.get("ZKLOGIN_PORT", "4000")),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


__all__ = ["Settings", "configure_logging"]
