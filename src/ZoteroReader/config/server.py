from __future__ import annotations

"""HTTP server configuration."""

from dataclasses import dataclass
from typing import Any, Mapping

from ZoteroReader.config.common import check_non_empty, get_section, read_int, read_str


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str
    port: int


def load_server(raw: Mapping[str, Any]) -> ServerConfig:
    section = get_section(raw, "server", required=False)
    return ServerConfig(
        host=read_str(section, "server", "host", "127.0.0.1"),
        port=read_int(section, "server", "port", 5000),
    )


def check_server(config: ServerConfig) -> None:
    check_non_empty(config.host, "server.host")
    if not 0 < config.port < 65536:
        raise ValueError("server.port must be between 1 and 65535")
