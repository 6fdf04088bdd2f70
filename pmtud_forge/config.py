from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path


CONFIG_FILE_ENV = "PMTUD_FORGE_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.ini"
DEFAULT_NEXT_HOP_MTU = 1280

_ENV_TO_INI_KEY: dict[str, tuple[str, str]] = {
    "PMTUD_FORGE_LOG_LEVEL": ("common", "log_level"),
    "PMTUD_FORGE_SOURCE_HOST": ("packet", "source_host"),
    "PMTUD_FORGE_DESTINATION_HOST": ("packet", "destination_host"),
    "PMTUD_FORGE_NEXT_HOP_MTU": ("packet", "next_hop_mtu"),
}

_VALID_INI_KEYS: dict[str, set[str]] = {}
for section_name, key_name in _ENV_TO_INI_KEY.values():
    _VALID_INI_KEYS.setdefault(section_name, set()).add(key_name)


@dataclass(frozen=True)
class _ConfigResolver:
    ini_values: dict[tuple[str, str], str]

    @classmethod
    def from_environment(cls) -> "_ConfigResolver":
        return cls(ini_values=_load_ini_values())

    def raw(self, env_name: str) -> str | None:
        env_value = os.getenv(env_name)
        if env_value is not None:
            return env_value
        return self.ini_values.get(_ENV_TO_INI_KEY[env_name])

    def env_int(self, name: str, default: int) -> int:
        value = self.raw(name)
        if value is None:
            return default
        return int(value)

    def env_str(self, name: str, default: str) -> str:
        value = self.raw(name)
        if value is None:
            return default
        return value


def _resolve_config_file_path() -> tuple[Path, bool]:
    configured_path = os.getenv(CONFIG_FILE_ENV)
    if configured_path is not None:
        normalized = configured_path.strip()
        if not normalized:
            raise ValueError(f"{CONFIG_FILE_ENV} is set but empty")
        return Path(normalized), True
    return Path(DEFAULT_CONFIG_FILE), False


def _load_ini_values() -> dict[tuple[str, str], str]:
    config_path, explicit = _resolve_config_file_path()
    if not config_path.exists():
        if explicit:
            raise ValueError(f"config file not found: {config_path}")
        return {}

    parser = configparser.ConfigParser(
        interpolation=None,
        default_section="__unused_defaults__",
    )
    try:
        with config_path.open("r", encoding="utf-8") as config_file:
            parser.read_file(config_file)
    except (OSError, configparser.Error) as exc:
        raise ValueError(f"failed to load config file {config_path}: {exc}") from exc

    ini_values: dict[tuple[str, str], str] = {}
    for section_name in parser.sections():
        section = section_name.strip().lower()
        valid_keys = _VALID_INI_KEYS.get(section)
        if valid_keys is None:
            raise ValueError(f"unknown config section [{section_name}] in {config_path}")

        for key_name, value in parser.items(section_name, raw=True):
            key = key_name.strip().lower()
            if key not in valid_keys:
                raise ValueError(f"unknown config key '{key_name}' in section [{section_name}] in {config_path}")
            ini_values[(section, key)] = value

    return ini_values


@dataclass(frozen=True)
class CommonConfig:
    log_level: str


@dataclass(frozen=True)
class PacketConfig:
    source_host: str
    destination_host: str
    next_hop_mtu: int


@dataclass(frozen=True)
class SenderConfig:
    common: CommonConfig
    packet: PacketConfig


def _load_common_config(resolver: _ConfigResolver) -> CommonConfig:
    return CommonConfig(
        log_level=resolver.env_str("PMTUD_FORGE_LOG_LEVEL", "INFO").upper(),
    )


def load_common_config() -> CommonConfig:
    resolver = _ConfigResolver.from_environment()
    return _load_common_config(resolver)


def _load_packet_config(resolver: _ConfigResolver) -> PacketConfig:
    # next_hop_mtu is passed through unchecked; values below 68 are encoded as-is.
    return PacketConfig(
        source_host=resolver.env_str("PMTUD_FORGE_SOURCE_HOST", "0.0.0.0").strip(),
        destination_host=resolver.env_str("PMTUD_FORGE_DESTINATION_HOST", "127.0.0.1").strip(),
        next_hop_mtu=resolver.env_int("PMTUD_FORGE_NEXT_HOP_MTU", DEFAULT_NEXT_HOP_MTU),
    )


def load_packet_config() -> PacketConfig:
    resolver = _ConfigResolver.from_environment()
    return _load_packet_config(resolver)


def load_sender_config() -> SenderConfig:
    resolver = _ConfigResolver.from_environment()
    return SenderConfig(
        common=_load_common_config(resolver),
        packet=_load_packet_config(resolver),
    )
