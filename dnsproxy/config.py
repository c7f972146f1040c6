"""Loading and validating the proxy's TOML configuration."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

_DIGITS = frozenset("0123456789")


class ConfigError(Exception):
    """Raised when the configuration file is missing, malformed or invalid."""


@dataclass(frozen=True)
class Config:
    """Settings of the proxy: upstream server, blacklist and the rcode to answer with."""

    dns_server: str
    blacklist: tuple[str, ...] = field(default_factory=tuple)
    blacklist_response_code: int = 0

    def describe(self) -> str:
        """Return a human-readable summary of the configuration."""
        entries = ", ".join(self.blacklist)
        return (
            f"UPSTREAM DNS IP: {self.dns_server}\n"
            f"Blacklist response: {self.blacklist_response_code}\n"
            f"Blacklist IPs = [{entries}]"
        )


def is_valid_ipv4(ip: str | None) -> bool:
    """Check for a dotted-quad address: four groups of 1-3 digits, each at most 255."""
    if not ip:
        return False
    segments = ip.split(".")
    if len(segments) != 4:
        return False
    for segment in segments:
        if not segment or len(segment) > 3:
            return False
        if not set(segment) <= _DIGITS:
            return False
        if int(segment) > 255:
            return False
    return True


def load_config(path: str | Path) -> Config:
    """Read and validate the configuration file at ``path``."""
    try:
        with open(path, "rb") as handle:
            document = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(exc)) from exc

    dns_server = document.get("dns_server")
    if not isinstance(dns_server, str) or not is_valid_ipv4(dns_server):
        raise ConfigError(
            "Missing or invalid 'dns_server' property in config\n"
            "Example: 'dns_server = \"8.8.8.8\"'"
        )

    blacklist = document.get("blacklist")
    if not isinstance(blacklist, list):
        raise ConfigError(
            "Missing or invalid 'blacklist' property in config\n"
            "Example: 'blacklist = [\"example.com\", \"test.com\"]'"
        )

    code = document.get("blacklist_response_code")
    if not isinstance(code, int) or isinstance(code, bool):
        raise ConfigError(
            "Missing or invalid 'blacklist_response_code' property in config\n"
            "Example: 'blacklist_response_code = \"3\"'"
        )

    if not all(isinstance(entry, str) for entry in blacklist):
        raise ConfigError("'blacklist_ips' element not a string")

    return Config(
        dns_server=dns_server,
        blacklist=tuple(blacklist),
        blacklist_response_code=code,
    )