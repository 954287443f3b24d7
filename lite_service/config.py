"""Service settings, read from environment variables."""
import logging
import os
import sys
from dataclasses import dataclass

from partial_json.scanner import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

# Each nesting level costs two interpreter frames; keep headroom for the
# server stack that sits below the parser.
RECURSION_HEADROOM = 200


def max_safe_depth() -> int:
    return max(1, (sys.getrecursionlimit() - RECURSION_HEADROOM) // 2)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}; using {default}")
        return default


def _env_depth(name: str, default: int) -> int:
    depth = _env_int(name, default)
    ceiling = max_safe_depth()
    if depth > ceiling:
        logger.warning(f"{name}={depth} exceeds the recursion limit; clamping to {ceiling}")
        return ceiling
    if depth < 1:
        logger.warning(f"{name}={depth} is not positive; using {default}")
        return default
    return depth


@dataclass(frozen=True)
class ServiceConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    max_body_bytes: int = 1024 * 1024
    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        return cls(
            host=os.environ.get("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            log_level=os.environ.get("LOG_LEVEL", cls.log_level).upper(),
            max_body_bytes=_env_int("PARTIAL_JSON_MAX_BYTES", cls.max_body_bytes),
            max_depth=_env_depth("PARTIAL_JSON_MAX_DEPTH", cls.max_depth),
        )
