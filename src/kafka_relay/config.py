"""Kafka adapter configuration from YAML file or dict.

Loads the ``kafka:`` section of a YAML document into a single canonical
KafkaConfig:
- Broker connection (brokers, group id)
- Consumer tuning (session timeout, auto commit, offset reset, partition EOF)
- Producer tuning (message timeout, max message size)
- Reconnect policy (reconnect count, reconnect sleep)
- Client library log verbosity

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
"""

import json
import logging
import os
import re
import sys
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_KAFKA_MESSAGE_SIZE = 30 * (1 << 20)
DEFAULT_MESSAGE_TIMEOUT_MS = 500
DEFAULT_RECONNECT_COUNT = 100
DEFAULT_RECONNECT_SLEEP_MS = 500

# Default config file: config/config.yaml next to src/
DEFAULT_CONFIG_FILE = Path(__file__).parent.parent.parent / "config" / "config.yaml"


class AutoOffsetReset(Enum):
    """Strategy for resetting the consumer offset when no valid offset exists."""

    NONE = "none"
    LATEST = "latest"
    EARLIEST = "earliest"

    def __str__(self) -> str:
        return self.value


class KafkaLogLevel(Enum):
    """Client library log verbosity, ordered from least to most verbose."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"

    def __str__(self) -> str:
        return self.value

    def to_logging_level(self) -> int:
        return getattr(logging, self.value)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Support both ${VAR} and ${VAR:-default} syntax
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _parse_enum(enum_cls: type, value: Any, key: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper() if enum_cls is KafkaLogLevel else str(value).strip().lower())
    except ValueError:
        valid = [member.value for member in enum_cls]
        raise ValueError(f"{key} must be one of {valid}, got '{value}'") from None


def _parse_bool(value: Any, key: str) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise ValueError(f"{key} must be a boolean, got '{value}'")


def _parse_optional_int(value: Any, key: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return _parse_int(value, key)


def _parse_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got '{value}'")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got '{value}'") from None


@dataclass
class KafkaConfig:
    """Kafka adapter configuration.

    Configuration structure:
        kafka:
          brokers: [host:port, ...]
          group_id: my-group
          topic: events              # optional default topic
          partition_eof: false       # optional
          session_timeout_ms: 10000  # optional
          message_timeout_ms: 500
          max_message_size: 31457280
          auto_commit: true          # optional
          auto_offset_reset: earliest
          reconnect_count: 100
          reconnect_sleep_ms: 500
          log_level: ERROR

    Tri-state options (partition_eof, auto_commit, session_timeout_ms) left
    as None are omitted from the client options so the library default
    governs. All timing values in milliseconds.
    """

    # =========================================================================
    # CONNECTION SETTINGS
    # =========================================================================
    brokers: List[str] = field(default_factory=list)
    group_id: str = ""
    topic: Optional[str] = None

    # =========================================================================
    # CONSUMER SETTINGS
    # =========================================================================
    partition_eof: Optional[bool] = None
    session_timeout_ms: Optional[int] = None
    auto_commit: Optional[bool] = None
    auto_offset_reset: AutoOffsetReset = AutoOffsetReset.EARLIEST

    # =========================================================================
    # PRODUCER SETTINGS
    # =========================================================================
    message_timeout_ms: Optional[int] = DEFAULT_MESSAGE_TIMEOUT_MS
    max_message_size: Optional[int] = DEFAULT_KAFKA_MESSAGE_SIZE

    # =========================================================================
    # RECONNECT POLICY
    # =========================================================================
    reconnect_count: int = DEFAULT_RECONNECT_COUNT
    reconnect_sleep_ms: int = DEFAULT_RECONNECT_SLEEP_MS

    log_level: KafkaLogLevel = KafkaLogLevel.ERROR

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        if isinstance(self.brokers, str):
            self.brokers = [b.strip() for b in self.brokers.split(",") if b.strip()]
        else:
            self.brokers = list(self.brokers)
        self.auto_offset_reset = _parse_enum(AutoOffsetReset, self.auto_offset_reset, "auto_offset_reset")
        self.log_level = _parse_enum(KafkaLogLevel, self.log_level, "log_level")
        self.partition_eof = _parse_bool(self.partition_eof, "partition_eof")
        self.auto_commit = _parse_bool(self.auto_commit, "auto_commit")
        self.session_timeout_ms = _parse_optional_int(self.session_timeout_ms, "session_timeout_ms")
        self.message_timeout_ms = _parse_optional_int(self.message_timeout_ms, "message_timeout_ms")
        self.max_message_size = _parse_optional_int(self.max_message_size, "max_message_size")
        self.reconnect_count = _parse_int(self.reconnect_count, "reconnect_count")
        self.reconnect_sleep_ms = _parse_int(self.reconnect_sleep_ms, "reconnect_sleep_ms")

    @property
    def bootstrap_servers(self) -> str:
        return ",".join(self.brokers)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KafkaConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown kafka configuration keys: {unknown}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["auto_offset_reset"] = self.auto_offset_reset.value
        result["log_level"] = self.log_level.value
        return result

    def validate(self) -> None:
        """Validate configuration for correctness and constraints.

        Checks required fields and numeric ranges. Broker address format is
        not checked here; a bad address surfaces as a connection failure.
        """
        if not self.brokers:
            raise ValueError("brokers is required in kafka section")

        for broker in self.brokers:
            if not isinstance(broker, str) or not broker.strip():
                raise ValueError(f"brokers: every entry must be a non-empty string, got {broker!r}")

        self._validate_positive("session_timeout_ms", self.session_timeout_ms)
        self._validate_positive("message_timeout_ms", self.message_timeout_ms)
        self._validate_positive("max_message_size", self.max_message_size)
        self._validate_non_negative("reconnect_count", self.reconnect_count)
        self._validate_non_negative("reconnect_sleep_ms", self.reconnect_sleep_ms)

    @staticmethod
    def _validate_positive(key: str, value: Optional[int]) -> None:
        if value is not None and value <= 0:
            raise ValueError(f"kafka: {key} must be > 0, got {value}")

    @staticmethod
    def _validate_non_negative(key: str, value: int) -> None:
        if value < 0:
            raise ValueError(f"kafka: {key} must be >= 0, got {value}")


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> KafkaConfig:
    """Load Kafka configuration from a YAML file.

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n" f"Expected file: config/config.yaml"
        )

    logger.info("Loading configuration from file: %s", config_path)
    yaml_data = load_yaml(config_path)
    yaml_data = _expand_env_vars(yaml_data)

    if "kafka" not in yaml_data:
        raise ValueError(
            "Invalid config file: missing 'kafka:' section\n"
            "See config.yaml.example for correct structure"
        )

    kafka_config = yaml_data["kafka"] or {}

    if overrides:
        logger.debug("Applying overrides: %s", list(overrides.keys()))
        kafka_config = _deep_merge(kafka_config, overrides)

    config = KafkaConfig.from_dict(kafka_config)

    logger.debug(
        "Configuration loaded",
        extra={
            "brokers": config.brokers,
            "group_id": config.group_id,
            "reconnect_count": config.reconnect_count,
        },
    )

    config.validate()
    logger.debug("Configuration validation passed")

    return config


_kafka_config: Optional[KafkaConfig] = None


def get_config() -> KafkaConfig:
    """Get or load the singleton Kafka config instance."""
    global _kafka_config
    if _kafka_config is None:
        _kafka_config = load_config()
    return _kafka_config


def set_config(config: KafkaConfig) -> None:
    """Set the singleton Kafka config instance (useful for testing)."""
    global _kafka_config
    _kafka_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _kafka_config
    _kafka_config = None


def _cli_main() -> int:
    """CLI entry point for config validation and debugging."""
    import argparse

    from dotenv import load_dotenv

    parser = argparse.ArgumentParser(
        description="Kafka Relay Configuration Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate configuration
  python -m kafka_relay.config --validate

  # Show resolved configuration
  python -m kafka_relay.config --show

  # Use custom config file, JSON output for automation
  python -m kafka_relay.config --config /path/to/config.yaml --validate --json
        """,
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration structure and values",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Display resolved configuration",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.yaml file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format instead of human-readable",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    load_dotenv()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    if not args.validate and not args.show:
        parser.print_help()
        return 0

    try:
        config = load_config(config_path=args.config)
    except (FileNotFoundError, ValueError) as e:
        if args.json:
            print(json.dumps({"validation": {"passed": False, "error": str(e)}}, indent=2))
        else:
            print(f"Configuration invalid: {e}", file=sys.stderr)
        return 1

    output: Dict[str, Any] = {}
    if args.validate:
        output["validation"] = {"passed": True}
    if args.show:
        output["config"] = config.to_dict()

    if args.json:
        print(json.dumps(output, indent=2))
    else:
        if args.validate:
            print("Configuration valid")
        if args.show:
            print(yaml.safe_dump({"kafka": config.to_dict()}, sort_keys=False))

    return 0


if __name__ == "__main__":
    sys.exit(_cli_main())
