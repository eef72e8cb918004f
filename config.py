import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_CREDENTIALS_FILE = "auth/api_keys.json"
DEFAULT_RATE_LIMITS = "120 per minute"
DEFAULT_SEARCH_RATE_LIMIT = "30 per minute"


@dataclass(frozen=True, repr=False)
class Config:
    """Settings built once at startup and handed to every component."""

    lastfm_key: str
    giphy_key: str
    cache_dir: Path = Path("cache")
    template_dir: Optional[Path] = None
    upstream_timeout: float = 10.0
    upstream_retries: int = 0
    cache_ttl_days: int = 0
    rate_limits: str = DEFAULT_RATE_LIMITS
    search_rate_limit: str = DEFAULT_SEARCH_RATE_LIMIT
    rate_limit_enabled: bool = True

    def __post_init__(self):
        # Frozen: coerce paths through object.__setattr__
        object.__setattr__(self, 'cache_dir', Path(self.cache_dir))
        template_dir = Path(self.template_dir) if self.template_dir else BASE_DIR / "html"
        object.__setattr__(self, 'template_dir', template_dir)

    def __repr__(self):
        # Keys stay out of logs
        return (f"Config(cache_dir={str(self.cache_dir)!r}, template_dir={str(self.template_dir)!r}, "
                f"upstream_timeout={self.upstream_timeout}, upstream_retries={self.upstream_retries}, "
                f"cache_ttl_days={self.cache_ttl_days})")


def load_credentials(path):
    """Read API keys from a JSON credentials file. Returns {} if absent."""
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Unable to read credentials file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        print(f"Credentials file {path} does not contain a JSON object, ignoring")
        return {}
    return data


def _number(environ, name, default, cast):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        print(f"FATAL: {name} must be a number, got {raw!r}")
        sys.exit(1)
    if value < 0:
        print(f"FATAL: {name} must not be negative, got {raw!r}")
        sys.exit(1)
    return value


def _flag(environ, name, default):
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


def load_config(environ=None):
    """Build Config from environment variables, falling back to the credentials file for API keys."""
    if environ is None:
        environ = os.environ

    lastfm_key = environ.get("LASTFM_API_KEY")
    giphy_key = environ.get("GIPHY_API_KEY")
    if not (lastfm_key and giphy_key):
        credentials = load_credentials(environ.get("CREDENTIALS_FILE", DEFAULT_CREDENTIALS_FILE))
        lastfm_key = lastfm_key or credentials.get("lastfm_key")
        giphy_key = giphy_key or credentials.get("giphy_key")

    required_vars = {
        'LASTFM_API_KEY': lastfm_key,
        'GIPHY_API_KEY': giphy_key,
    }
    missing = [name for name, val in required_vars.items() if not val]
    if missing:
        print(f"FATAL: Missing required API keys: {', '.join(missing)}")
        print("Set these variables or add them to the credentials file before starting the server.")
        sys.exit(1)

    return Config(
        lastfm_key=lastfm_key,
        giphy_key=giphy_key,
        cache_dir=environ.get("CACHE_DIR", "cache"),
        template_dir=environ.get("TEMPLATE_DIR") or None,
        upstream_timeout=_number(environ, "UPSTREAM_TIMEOUT", 10.0, float),
        upstream_retries=_number(environ, "UPSTREAM_RETRIES", 0, int),
        cache_ttl_days=_number(environ, "CACHE_TTL_DAYS", 0, int),
        rate_limits=environ.get("RATE_LIMITS", DEFAULT_RATE_LIMITS),
        search_rate_limit=environ.get("SEARCH_RATE_LIMIT", DEFAULT_SEARCH_RATE_LIMIT),
        rate_limit_enabled=_flag(environ, "RATE_LIMIT_ENABLED", True),
    )
