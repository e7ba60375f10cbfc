"""Environment-driven configuration for the sandbox process."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from webhooksandbox.core.aggregator import DEFAULT_EVENTS_CAPACITY, DEFAULT_LOGS_CAPACITY

ENV_PREFIX = "WEBHOOK_SANDBOX_"


@dataclass(frozen=True, slots=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3001
    environment: str = "development"
    base_url: str = "http://localhost:3001"
    api_prefix: str = "/api"
    events_capacity: int = DEFAULT_EVENTS_CAPACITY
    logs_capacity: int = DEFAULT_LOGS_CAPACITY
    flush_delay_ms: int = 3000
    state_path: str | None = None
    log_file: str | None = None
    console: bool = True
    capture_server_logs: bool = True
    shutdown_timeout_ms: int = 2000
    log_level: str = "INFO"

    @property
    def flush_delay(self) -> float:
        """Debounce window in seconds."""
        return self.flush_delay_ms / 1000

    @property
    def shutdown_timeout(self) -> float:
        """Final flush timeout in seconds."""
        return self.shutdown_timeout_ms / 1000

    @property
    def durable(self) -> bool:
        return self.state_path is not None or self.log_file is not None


def _raw(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    value = os.getenv(name) if env is None else env.get(name)
    return None if value is None else str(value)


def _first_raw(*names: str, env: Mapping[str, str] | None = None) -> str | None:
    for name in names:
        value = _raw(name, env=env)
        if value is not None and value.strip():
            return value.strip()
    return None


def _flag(name: str, default: bool, *, env: Mapping[str, str] | None = None) -> bool:
    raw = _raw(name, env=env)
    if raw is None:
        return bool(default)
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _int(
    raw: str | None,
    default: int,
    *,
    minimum: int | None = None,
) -> int:
    if raw is None:
        value = int(default)
    else:
        try:
            value = int(raw.strip())
        except ValueError:
            value = int(default)
    if minimum is None:
        return value
    return max(int(minimum), value)


def _optional_text(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    raw = _raw(name, env=env)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Invalid numbers fall back to their defaults and capacities are clamped
    at zero. ``PORT``, ``NODE_ENV`` and ``BASE_URL`` are honoured alongside
    the ``WEBHOOK_SANDBOX_`` variables.

    Args:
        env: Mapping to read instead of ``os.environ``.
    """
    defaults = Settings()
    port = _int(
        _first_raw(f"{ENV_PREFIX}PORT", "PORT", env=env), defaults.port, minimum=0
    )
    environment = (
        _first_raw(f"{ENV_PREFIX}ENV", "NODE_ENV", env=env) or defaults.environment
    )
    base_url = _first_raw(f"{ENV_PREFIX}BASE_URL", "BASE_URL", env=env)
    if base_url is None:
        base_url = f"http://localhost:{port}"
    api_prefix = _raw(f"{ENV_PREFIX}API_PREFIX", env=env)
    if api_prefix is None:
        api_prefix = defaults.api_prefix
    api_prefix = api_prefix.strip().rstrip("/")
    if api_prefix and not api_prefix.startswith("/"):
        api_prefix = f"/{api_prefix}"

    return Settings(
        host=_first_raw(f"{ENV_PREFIX}HOST", env=env) or defaults.host,
        port=port,
        environment=environment,
        base_url=base_url.rstrip("/"),
        api_prefix=api_prefix,
        events_capacity=_int(
            _raw(f"{ENV_PREFIX}EVENTS_CAPACITY", env=env),
            defaults.events_capacity,
            minimum=0,
        ),
        logs_capacity=_int(
            _raw(f"{ENV_PREFIX}LOGS_CAPACITY", env=env),
            defaults.logs_capacity,
            minimum=0,
        ),
        flush_delay_ms=_int(
            _raw(f"{ENV_PREFIX}FLUSH_DELAY_MS", env=env),
            defaults.flush_delay_ms,
            minimum=0,
        ),
        state_path=_optional_text(f"{ENV_PREFIX}STATE_PATH", env=env),
        log_file=_optional_text(f"{ENV_PREFIX}LOG_FILE", env=env),
        console=_flag(f"{ENV_PREFIX}CONSOLE", defaults.console, env=env),
        capture_server_logs=_flag(
            f"{ENV_PREFIX}CAPTURE_SERVER_LOGS", defaults.capture_server_logs, env=env
        ),
        shutdown_timeout_ms=_int(
            _raw(f"{ENV_PREFIX}SHUTDOWN_TIMEOUT_MS", env=env),
            defaults.shutdown_timeout_ms,
            minimum=0,
        ),
        log_level=(
            _first_raw(f"{ENV_PREFIX}LOG_LEVEL", env=env) or defaults.log_level
        ).upper(),
    )
