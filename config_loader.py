"""
Configuration loader: local YAML file with environment overrides.
"""
import copy
import logging
import os
import re
from typing import Dict

import yaml

from collectors import ALL_COLLECTORS
from collectors.units import UNIT_SEQUENCE_SOURCES, DEFAULT_UNIT_SEQUENCE_SOURCE


DEFAULT_CONFIG = {
    "web": {
        "listen_address": "0.0.0.0",
        "port": 9778,
        "telemetry_path": "/metrics",
        "http_only": False,
        "certificate": "",
        "key": "",
    },
    "servertech": {
        "http_timeout": 20.0,
        "verify_tls": True,
        "unit_sequence_source": DEFAULT_UNIT_SEQUENCE_SOURCE,
    },
    "collectors": {name: True for name in ALL_COLLECTORS},
    "log_level": "INFO",
}

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    "SERVERTECH_LISTEN_ADDRESS": ("web", "listen_address", str),
    "SERVERTECH_PORT": ("web", "port", int),
    "SERVERTECH_TELEMETRY_PATH": ("web", "telemetry_path", str),
    "SERVERTECH_HTTP_ONLY": ("web", "http_only", bool),
    "SERVERTECH_CERTIFICATE": ("web", "certificate", str),
    "SERVERTECH_KEY": ("web", "key", str),
    "SERVERTECH_HTTP_TIMEOUT": ("servertech", "http_timeout", str),
    "SERVERTECH_VERIFY_TLS": ("servertech", "verify_tls", bool),
    "LOG_LEVEL": (None, "log_level", str),
}

SECONDS_PATTERN = re.compile(r"\d+(?:\.\d+)?")
DURATION_PATTERN = re.compile(r"(?:\d+(?:\.\d+)?(?:ms|h|m|s))+")
DURATION_SEGMENT = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when the configuration is missing required values or is malformed."""


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"Invalid boolean value: {value!r}")


def parse_duration(value) -> float:
    """
    Parse a timeout given as seconds or as a duration string.

    Accepts numbers (seconds), plain numeric strings like "15", and Go-style
    duration strings built from one or more <number><unit> segments with
    units h, m, s and ms, such as "20s", "500ms" or "1m30s".

    Raises:
        ConfigError: If the value cannot be parsed or is not positive
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        if SECONDS_PATTERN.fullmatch(text):
            seconds = float(text)
        elif DURATION_PATTERN.fullmatch(text):
            seconds = sum(
                float(number) * DURATION_UNITS[unit]
                for number, unit in DURATION_SEGMENT.findall(text)
            )
        else:
            raise ConfigError(f"Invalid duration: {value!r}")

    if seconds <= 0:
        raise ConfigError(f"Duration must be > 0, got {value!r}")
    return seconds


def _merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """
    Load exporter configuration from a local config.yaml.

    Priority (highest first):
    1. Environment variables (see ENV_OVERRIDES)
    2. Local config.yaml
    3. Built-in defaults

    Environment variables:
    - LOCAL_CONFIG_PATH: Path to local config file (default: ./config.yaml)
    """

    def __init__(self, path: str = None):
        self.local_config_path = path or os.getenv(
            "LOCAL_CONFIG_PATH",
            "./config.yaml"
        )
        self.logger = logging.getLogger(self.__class__.__name__)

    def load(self) -> Dict:
        """
        Load, merge and validate configuration.

        Returns:
            Configuration dictionary

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid
        """
        file_config = self._load_local_config()
        config = _merge(DEFAULT_CONFIG, file_config)
        self._apply_env(config)
        return self.validate(config)

    def _load_local_config(self) -> Dict:
        """
        Load configuration from the local config.yaml file.

        A missing file is not an error; defaults are used instead.
        """
        if not os.path.exists(self.local_config_path):
            self.logger.warning(
                f"Config file {self.local_config_path} not found, using defaults"
            )
            return {}

        self.logger.info(f"Loading config from {self.local_config_path}")

        try:
            with open(self.local_config_path, 'r') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read {self.local_config_path}: {e}")

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f"{self.local_config_path} must contain a mapping")

        return config

    def _apply_env(self, config: Dict) -> None:
        for env_name, (section, key, kind) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue

            try:
                if kind is bool:
                    value = parse_bool(raw)
                elif kind is int:
                    value = int(raw)
                else:
                    value = raw
            except ValueError as e:
                raise ConfigError(f"Invalid value for {env_name}: {e}")

            target = config.setdefault(section, {}) if section else config
            target[key] = value
            self.logger.debug(f"Applied {env_name} override")

    def validate(self, config: Dict) -> Dict:
        """
        Normalise value types and check required combinations.

        Raises:
            ConfigError: If a value is invalid
        """
        for section in ("web", "servertech"):
            if not isinstance(config.get(section), dict):
                raise ConfigError(f"{section} must be a mapping")

        web = config["web"]
        servertech = config["servertech"]

        try:
            web["port"] = int(web["port"])
        except (TypeError, ValueError):
            raise ConfigError(f"web.port must be an integer, got {web['port']!r}")
        if not (1 <= web["port"] <= 65535):
            raise ConfigError(f"web.port must be between 1 and 65535, got {web['port']}")

        if not str(web["telemetry_path"]).startswith("/"):
            raise ConfigError(f"web.telemetry_path must start with '/', got {web['telemetry_path']!r}")

        web["http_only"] = parse_bool(web["http_only"])
        if not web["http_only"] and (not web.get("certificate") or not web.get("key")):
            raise ConfigError(
                "HTTPS mode selected but SSL certificate and key not specified"
            )

        servertech["http_timeout"] = parse_duration(servertech["http_timeout"])
        servertech["verify_tls"] = parse_bool(servertech["verify_tls"])

        if servertech["unit_sequence_source"] not in UNIT_SEQUENCE_SOURCES:
            raise ConfigError(
                f"servertech.unit_sequence_source must be one of "
                f"{', '.join(UNIT_SEQUENCE_SOURCES)}, got {servertech['unit_sequence_source']!r}"
            )

        collectors = config.get("collectors") or {}
        if not isinstance(collectors, dict):
            raise ConfigError("collectors must be a mapping of name to true/false")
        config["collectors"] = {name: parse_bool(value) for name, value in collectors.items()}

        config["log_level"] = str(config.get("log_level", "INFO")).upper()
        if config["log_level"] not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {config['log_level']!r}")

        return config
