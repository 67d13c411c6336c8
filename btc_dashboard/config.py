"""Shared configuration loader for the dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG_PATH = Path.home() / ".btc-dashboard.yaml"
DEFAULT_RPC_USER = "youruser"
DEFAULT_RPC_PASSWORD = "yourpassword"
DEFAULT_ADDRESS = "bc1qfpacvgpjms0eu6mszhwgjjs03yldesmmcgzad0"
BACKENDS = ("cli", "rpc")


@dataclass
class RPCConfig:
    """Credentials and endpoint handed to the query executor."""

    user: str = DEFAULT_RPC_USER
    password: str = DEFAULT_RPC_PASSWORD
    host: str = "127.0.0.1"
    port: int = 8332
    use_https: bool = False
    wallet: str | None = None

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_https else "http"
        return f"{scheme}://{self.host}:{self.port}"


@dataclass
class DashboardConfig:
    """Everything the session needs at startup."""

    rpc: RPCConfig = field(default_factory=RPCConfig)
    commands_path: Path = Path("commands.json")
    address_book_path: Path = Path("addresses.json")
    backend: str = "cli"
    cli_binary: str = "bitcoin-cli"
    default_address: str = DEFAULT_ADDRESS
    poll_interval_ms: int = 100
    debounce_ms: int = 120
    status_ttl_seconds: float = 2.0
    log_file: Path | None = None


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    try:
        loaded = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML mapping")
    return loaded


def _section(file_config: Mapping[str, Any], name: str, path: Path) -> dict[str, Any]:
    section = file_config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected '{name}' to be a mapping in {path}")
    return section


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    return None


def _coerce_port(raw: Any, *, source: str) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid port in {source}: {raw}") from exc


def _coerce_int(raw: Any, *, name: str) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid integer for {name}: {raw}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative: {raw}")
    return value


def _coerce_seconds(raw: Any) -> float:
    if raw is None:
        return 2.0
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid status_ttl_seconds: {raw}") from exc


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _parse_endpoint(raw: str | None) -> tuple[str | None, int | None, bool | None]:
    if not raw:
        return None, None, None
    parsed = urlparse(raw)
    if not parsed.scheme and not parsed.hostname:
        raise ConfigurationError(f"Invalid RPC endpoint URL: {raw}")
    host = parsed.hostname or None
    try:
        port = parsed.port
    except ValueError as exc:
        raise ConfigurationError(f"Invalid port in RPC endpoint URL: {raw}") from exc
    use_https = parsed.scheme.lower() == "https" if parsed.scheme else None
    return host, port, use_https


def _env(env_map: Mapping[str, str], name: str) -> str | None:
    return env_map.get(name) or env_map.get(f"BTC_DASHBOARD_{name}")


def load_rpc_config(
    rpc_section: Mapping[str, Any],
    env_map: Mapping[str, str],
    override_map: Mapping[str, Any],
    *,
    source: str,
) -> RPCConfig:
    """Resolve the node credentials and endpoint.

    Missing credentials fall back to the placeholder values; the executor
    reports authentication problems when a query actually runs.
    """

    endpoint_host, endpoint_port, endpoint_use_https = _parse_endpoint(
        _first_value(
            override_map.get("endpoint"), _env(env_map, "RPC_URL"), rpc_section.get("endpoint")
        )
    )

    return RPCConfig(
        user=_first_value(
            override_map.get("user"),
            _env(env_map, "RPC_USER"),
            rpc_section.get("user"),
            default=DEFAULT_RPC_USER,
        ),
        password=_first_value(
            override_map.get("password"),
            _env(env_map, "RPC_PASSWORD"),
            rpc_section.get("password"),
            default=DEFAULT_RPC_PASSWORD,
        ),
        host=_first_value(
            override_map.get("host"),
            endpoint_host,
            _env(env_map, "RPC_HOST"),
            rpc_section.get("host"),
            default="127.0.0.1",
        ),
        port=_first_value(
            _coerce_port(override_map.get("port"), source="overrides"),
            endpoint_port,
            _coerce_port(_env(env_map, "RPC_PORT"), source="environment"),
            _coerce_port(rpc_section.get("port"), source=f"{source} rpc.port"),
            default=8332,
        ),
        use_https=bool(
            _first_value(
                _coerce_bool(override_map.get("use_https")),
                endpoint_use_https,
                _coerce_bool(_env(env_map, "RPC_USE_HTTPS")),
                _coerce_bool(rpc_section.get("use_https")),
                default=False,
            )
        ),
        wallet=_first_value(
            override_map.get("wallet"), _env(env_map, "RPC_WALLET"), rpc_section.get("wallet")
        ),
    )


def load_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> DashboardConfig:
    """Load dashboard configuration from overrides, environment and optional YAML."""

    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    file_config = _load_config_file(path, required=config_path is not None)
    rpc_section = _section(file_config, "rpc", path)
    dash_section = _section(file_config, "dashboard", path)
    override_map = dict(overrides or {})

    rpc = load_rpc_config(
        rpc_section, env_map, override_map.get("rpc") or {}, source=str(path)
    )

    backend = str(
        _first_value(
            override_map.get("backend"),
            _env(env_map, "BACKEND"),
            dash_section.get("backend"),
            default="cli",
        )
    ).lower()
    if backend not in BACKENDS:
        raise ConfigurationError(
            f"Unknown backend {backend!r}; expected one of {', '.join(BACKENDS)}"
        )

    log_file = _first_value(override_map.get("log_file"), dash_section.get("log_file"))

    return DashboardConfig(
        rpc=rpc,
        commands_path=Path(
            _first_value(
                override_map.get("commands_path"),
                dash_section.get("commands_path"),
                default="commands.json",
            )
        ).expanduser(),
        address_book_path=Path(
            _first_value(
                override_map.get("address_book_path"),
                dash_section.get("address_book_path"),
                default="addresses.json",
            )
        ).expanduser(),
        backend=backend,
        cli_binary=_first_value(
            override_map.get("cli_binary"),
            _env(env_map, "CLI_BINARY"),
            dash_section.get("cli_binary"),
            default="bitcoin-cli",
        ),
        default_address=_first_value(
            override_map.get("default_address"),
            dash_section.get("default_address"),
            default=DEFAULT_ADDRESS,
        ),
        poll_interval_ms=_first_value(
            _coerce_int(dash_section.get("poll_interval_ms"), name="poll_interval_ms"),
            default=100,
        ),
        debounce_ms=_first_value(
            _coerce_int(dash_section.get("debounce_ms"), name="debounce_ms"),
            default=120,
        ),
        status_ttl_seconds=_coerce_seconds(dash_section.get("status_ttl_seconds")),
        log_file=Path(log_file).expanduser() if log_file else None,
    )
