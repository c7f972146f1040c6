"""UDP DNS proxy that answers blacklisted queries itself and forwards the rest upstream."""

from __future__ import annotations

import argparse
import ipaddress
import socket
import sys
from pathlib import Path

from .config import Config, ConfigError, load_config
from .packet import HEADER_SIZE, PacketError, error_response, is_blacklisted, parse_request

BUFFER_SIZE = 1024
DEFAULT_PORT = 9898
UPSTREAM_PORT = 53
UPSTREAM_TIMEOUT = 2.0
CONFIG_NAME = "config.toml"
_POLL_INTERVAL = 0.2


class DnsProxy:
    """A UDP DNS proxy bound to a local port and talking to one upstream server."""

    def __init__(
        self,
        config: Config,
        port: int = DEFAULT_PORT,
        host: str = "0.0.0.0",
        upstream_port: int = UPSTREAM_PORT,
        timeout: float = UPSTREAM_TIMEOUT,
    ) -> None:
        try:
            upstream_host = str(ipaddress.IPv4Address(config.dns_server))
        except ValueError as exc:
            raise ConfigError(f"Invalid DNS server IP in config: {config.dns_server}") from exc

        self.config = config
        self.upstream = (upstream_host, upstream_port)
        self._running = False
        self._closed = False

        self._listener = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._listener.bind((host, port))
            self._upstream_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError:
            self._listener.close()
            raise
        self._upstream_sock.settimeout(timeout)

    @property
    def address(self) -> tuple[str, int]:
        """The local address the proxy listens on."""
        return self._listener.getsockname()

    def __enter__(self) -> DnsProxy:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def process(self, data: bytes) -> bytes | None:
        """Produce the reply for one client message, or None if there is nothing to send."""
        if len(data) < HEADER_SIZE:
            return None
        try:
            packet = parse_request(data)
        except PacketError:
            print("Invalid DNS request", file=sys.stderr)
            return None

        if packet.questions:
            name = packet.questions[0].name
            if is_blacklisted(name, self.config.blacklist):
                print(f"Query: {name} : blacklisted\n")
                return error_response(data, self.config.blacklist_response_code)
            print(f"Query: {name} : redirected to upstream dns\n")

        print()
        return self.forward(data)

    def forward(self, data: bytes) -> bytes | None:
        """Send ``data`` upstream and return its reply, or None on failure or timeout."""
        try:
            self._upstream_sock.sendto(data, self.upstream)
        except OSError as exc:
            print(f"sendto upstream failed: {exc}", file=sys.stderr)
            return None
        try:
            reply, _ = self._upstream_sock.recvfrom(BUFFER_SIZE)
        except OSError as exc:
            print(f"recvfrom upstream failed or timed out: {exc}", file=sys.stderr)
            return None
        return reply

    def serve_forever(self) -> None:
        """Answer client messages until :meth:`close` is called."""
        self._running = True
        try:
            self._listener.settimeout(_POLL_INTERVAL)
        except OSError:
            return
        while self._running:
            try:
                data, client = self._listener.recvfrom(BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as exc:
                if not self._running or self._closed:
                    break
                print(f"Receive from client failed: {exc}", file=sys.stderr)
                continue

            if len(data) < HEADER_SIZE:
                continue
            print(f"Received from {client[0]}:{client[1]}, {len(data)} bytes")

            reply = self.process(data)
            if reply is None:
                continue
            try:
                self._listener.sendto(reply, client)
            except OSError as exc:
                print(f"sendto client failed: {exc}", file=sys.stderr)

    def close(self) -> None:
        """Stop serving and release both sockets."""
        self._running = False
        if self._closed:
            return
        self._closed = True
        self._upstream_sock.close()
        self._listener.close()


def default_config_path() -> Path:
    """The configuration file that sits next to the running program."""
    return Path(sys.argv[0]).resolve().parent / CONFIG_NAME


def _port(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        value = 0
    if not 0 < value <= 65535:
        raise argparse.ArgumentTypeError(f"Invalid port number: {text}")
    return value


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    """Parse the command line: an optional ``-p port``."""
    parser = argparse.ArgumentParser(description="UDP DNS proxy with a blacklist.")
    parser.add_argument("-p", dest="port", type=_port, default=DEFAULT_PORT, help="port to listen on")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the proxy; returns the process exit status."""
    args = parse_args(argv)
    try:
        config = load_config(default_config_path())
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    print(config.describe())

    try:
        proxy = DnsProxy(config, port=args.port)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Socket setup failed: {exc}", file=sys.stderr)
        return 1

    with proxy:
        print("\n")
        print(f"UDP DNS proxy server listening on port {args.port}...\n")
        try:
            proxy.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0