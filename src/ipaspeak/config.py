"""Configuration management for ipaspeak.

Loads configuration from ~/.config/ipaspeak/config.toml.
Priority chain: CLI flags > env vars > config file > defaults.

The loaded config is an immutable object built once at startup and passed
explicitly to the components that need it.
"""

import os
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

CONFIG_DIR = Path.home() / ".config" / "ipaspeak"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# ipaspeak configuration

[provider]
# Provider: "elevenlabs" (cloud) or "kokoro" (local, needs the 'local' extra)
name = "elevenlabs"

# Model ID. ElevenLabs phoneme tags need eleven_flash_v2 or eleven_turbo_v2
model = "eleven_flash_v2"

# Fallback voice when no voice is listed for the request language
voice = "21m00Tcm4TlvDq8ikWAM"

# Compute device for local models: "auto", "mps" (Apple Silicon), "cuda", "cpu"
device = "auto"

# Seconds allowed per provider attempt
timeout = 5.0

# Extra attempts for transient failures and timeouts
max_retries = 2

# First retry delay in seconds, doubled on every further retry
backoff = 0.25

# Give up retrying once this many seconds have passed since the first attempt
deadline = 15.0

[voices]
# Voices per two-letter language prefix; one is picked at random per synthesis
# en = ["21m00Tcm4TlvDq8ikWAM", "pNInz6obpgDQGcFmaJgB"]

[http]
# Bind address: "127.0.0.1" = localhost only, "0.0.0.0" = allow LAN access
host = "127.0.0.1"
port = 8000

# Requests per client per hour on the speak routes (0 disables)
rate_limit_per_hour = 100

# Origins echoed back in Access-Control-Allow-Origin
allowed_origin_prefixes = ["chrome-extension://", "moz-extension://"]

[cache]
# In-memory audio cache bounds
max_entries = 1024
max_bytes = 67108864

# Seconds before an entry expires (0 disables)
ttl_seconds = 86400

[ipa]
# Maximum IPA length in characters after normalization
max_length = 50

# Language used when a request names none
default_language = "English"

# API keys are read from environment variables, not this file:
#   ELEVENLABS_API_KEY  - ElevenLabs provider
"""


@dataclass(frozen=True)
class ProviderConfig:
    """Synthesis provider configuration."""

    name: str = "elevenlabs"
    model: str = "eleven_flash_v2"
    voice: str = "21m00Tcm4TlvDq8ikWAM"
    device: str = "auto"
    timeout: float = 5.0
    max_retries: int = 2
    backoff: float = 0.25
    deadline: float = 15.0
    voices: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only view of a private copy
        object.__setattr__(self, "voices", MappingProxyType(dict(self.voices)))


@dataclass(frozen=True)
class HTTPConfig:
    """HTTP API configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    rate_limit_per_hour: int = 100
    allowed_origin_prefixes: tuple[str, ...] = (
        "chrome-extension://",
        "moz-extension://",
    )


@dataclass(frozen=True)
class CacheConfig:
    """Audio cache configuration."""

    max_entries: int = 1024
    max_bytes: int = 64 * 1024 * 1024
    ttl_seconds: float | None = 86400


@dataclass(frozen=True)
class IPAConfig:
    """IPA input configuration."""

    max_length: int = 50
    default_language: str = "English"


@dataclass(frozen=True)
class IpaspeakConfig:
    """Top-level ipaspeak configuration."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    ipa: IPAConfig = field(default_factory=IPAConfig)


def generate_config(path: Path = CONFIG_PATH) -> Path:
    """Generate default config file at ~/.config/ipaspeak/config.toml."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def load_config(path: Path | None = None) -> IpaspeakConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Args:
        path: Config file location (defaults to ~/.config/ipaspeak/config.toml)

    Returns:
        Loaded and validated IpaspeakConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        generated = generate_config(config_path)
        print(
            f"No config found. Generated {generated}, review it and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    try:
        return parse_config(data, os.environ)
    except ValueError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        print(f"Edit {config_path} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from e


def parse_config(
    data: dict[str, Any], env: Mapping[str, str] | None = None
) -> IpaspeakConfig:
    """Build a validated config from parsed TOML data and environment overrides.

    Args:
        data: Parsed TOML document (missing sections fall back to defaults)
        env: Environment mapping for overrides (None means no overrides)

    Returns:
        IpaspeakConfig

    Raises:
        ValueError: If a value is out of range or of the wrong type
    """
    env = env if env is not None else {}
    provider = data.get("provider", {})
    voices = data.get("voices", {})
    http_cfg = data.get("http", {})
    cache = data.get("cache", {})
    ipa = data.get("ipa", {})

    defaults = IpaspeakConfig()

    ttl = float(cache.get("ttl_seconds", defaults.cache.ttl_seconds))

    config = IpaspeakConfig(
        provider=ProviderConfig(
            name=env.get("IPASPEAK_PROVIDER", provider.get("name", defaults.provider.name)),
            model=env.get("IPASPEAK_MODEL", provider.get("model", defaults.provider.model)),
            voice=env.get("IPASPEAK_VOICE", provider.get("voice", defaults.provider.voice)),
            device=env.get("IPASPEAK_DEVICE", provider.get("device", defaults.provider.device)),
            timeout=float(
                env.get("IPASPEAK_TIMEOUT", provider.get("timeout", defaults.provider.timeout))
            ),
            max_retries=int(provider.get("max_retries", defaults.provider.max_retries)),
            backoff=float(provider.get("backoff", defaults.provider.backoff)),
            deadline=float(provider.get("deadline", defaults.provider.deadline)),
            voices=_parse_voices(voices),
        ),
        http=HTTPConfig(
            host=env.get("IPASPEAK_HTTP_HOST", http_cfg.get("host", defaults.http.host)),
            port=int(env.get("IPASPEAK_HTTP_PORT", http_cfg.get("port", defaults.http.port))),
            rate_limit_per_hour=int(
                env.get(
                    "IPASPEAK_RATE_LIMIT",
                    http_cfg.get("rate_limit_per_hour", defaults.http.rate_limit_per_hour),
                )
            ),
            allowed_origin_prefixes=tuple(
                http_cfg.get("allowed_origin_prefixes", defaults.http.allowed_origin_prefixes)
            ),
        ),
        cache=CacheConfig(
            max_entries=int(
                env.get(
                    "IPASPEAK_CACHE_MAX_ENTRIES",
                    cache.get("max_entries", defaults.cache.max_entries),
                )
            ),
            max_bytes=int(cache.get("max_bytes", defaults.cache.max_bytes)),
            ttl_seconds=ttl if ttl > 0 else None,
        ),
        ipa=IPAConfig(
            max_length=int(ipa.get("max_length", defaults.ipa.max_length)),
            default_language=ipa.get("default_language", defaults.ipa.default_language),
        ),
    )

    _validate(config)
    return config


def _parse_voices(voices: dict[str, Any]) -> dict[str, tuple[str, ...]]:
    parsed = {}
    for prefix, ids in voices.items():
        if isinstance(ids, str):
            ids = [ids]
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise ValueError(f"voices.{prefix} must be a list of voice IDs")
        if ids:
            parsed[prefix.lower()] = tuple(ids)
    return parsed


def _validate(config: IpaspeakConfig) -> None:
    if config.provider.timeout <= 0:
        raise ValueError("provider.timeout must be positive")
    if config.provider.max_retries < 0:
        raise ValueError("provider.max_retries cannot be negative")
    if config.provider.backoff < 0:
        raise ValueError("provider.backoff cannot be negative")
    if config.provider.deadline < config.provider.timeout:
        raise ValueError("provider.deadline must be at least provider.timeout")
    if not 0 < config.http.port < 65536:
        raise ValueError("http.port must be between 1 and 65535")
    if config.http.rate_limit_per_hour < 0:
        raise ValueError("http.rate_limit_per_hour cannot be negative")
    if config.cache.max_entries < 1:
        raise ValueError("cache.max_entries must be at least 1")
    if config.cache.max_bytes < 1:
        raise ValueError("cache.max_bytes must be at least 1")
    if config.ipa.max_length < 1:
        raise ValueError("ipa.max_length must be at least 1")
