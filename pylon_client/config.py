from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .exceptions import InvalidArgumentError

VERSION = '1.1.0'
DEFAULT_BASE_URL = 'https://api.usepylon.com'
DEFAULT_TIMEOUT = 30

_TRUTHY = {'1', 'true', 'yes', 'on'}


def env(name: str, required: bool = True) -> Optional[str]:
    val = os.getenv(name)
    if required and (val is None or val.strip() == ''):
        raise InvalidArgumentError(f"Missing required environment variable: {name}")
    return val


def load_env_file(env_path: Path) -> None:
    """Fill unset (or blank) environment variables from a local .env file."""
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = line.split('=', 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if not k:
            continue
        existing = os.environ.get(k)
        if existing is None or existing.strip() == '':
            os.environ[k] = v


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for one client instance."""
    api_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    debug: bool = False
    timeout: Optional[float] = DEFAULT_TIMEOUT

    def __post_init__(self):
        if not self.api_key or not str(self.api_key).strip():
            raise InvalidArgumentError('api_key is required')
        if not self.base_url:
            raise InvalidArgumentError('base_url cannot be empty')
        object.__setattr__(self, 'base_url', self.base_url.rstrip('/'))

    @classmethod
    def from_env(cls) -> 'ClientConfig':
        api_key = env('PYLON_API_KEY')
        base_url = env('PYLON_BASE_URL', required=False) or DEFAULT_BASE_URL
        debug = (env('PYLON_DEBUG', required=False) or '').strip().lower() in _TRUTHY
        timeout_raw = env('PYLON_TIMEOUT', required=False)
        timeout: Optional[float] = DEFAULT_TIMEOUT
        if timeout_raw and timeout_raw.strip():
            try:
                timeout = float(timeout_raw)
            except ValueError:
                raise InvalidArgumentError(f'PYLON_TIMEOUT must be a number, got {timeout_raw!r}') from None
        return cls(api_key, base_url=base_url, debug=debug, timeout=timeout)  # type: ignore[arg-type]
