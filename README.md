# dnsproxy

A small UDP DNS proxy for IPv4. It listens for DNS queries and checks the
name in the first question of each query against a blacklist. Then it either:

- answers at once with an error response. The request is echoed back with
  the response bit and a configurable response code OR-ed into the flags, and
  with the answer and additional counts set to zero. Or:
- forwards the query unchanged to an upstream DNS server on port 53 and
  relays that server's reply to the client. The upstream server gets two
  seconds to reply. If it does not reply in time, the client gets no answer.

Datagrams shorter than the 12-byte DNS header are ignored. The proxy reports
malformed requests on stderr and does not answer them.

## Installation

```
pip install .
```

## Running

```
dnsproxy
dnsproxy -p 5353
```

By default the proxy listens on UDP port 9898 on all interfaces. `-p` selects
another port from 1 to 65535. Any other value is rejected with
`Invalid port number`, and the program exits with status 2.

At start-up the program prints the loaded configuration. After that it prints
the following for each query:

- the client address;
- the queried name;
- whether the query was blacklisted or sent upstream.

Stop the program with Ctrl-C.

## Configuration

The program reads a TOML file named `config.toml` from the directory of the
running program. `dnsproxy.server.default_config_path()` gives this path. It
resolves `sys.argv[0]` and takes its parent directory, so when you use the
installed `dnsproxy` command, the file must sit next to that script.

The file needs three keys:

```toml
dns_server = "8.8.8.8"
blacklist = ["ads.example.com", "*.tracker.*"]
blacklist_response_code = 3
```

- `dns_server`: the dotted IPv4 address of the upstream resolver. It must have
  four groups of one to three digits, and each group must be at most 255.
- `blacklist`: a list of strings. Each entry works in one of two ways:
  - An entry longer than eight characters of the form `*.middle.*` is a
    pattern. It matches a name that contains `.middle.` followed by at least
    one more character. Only the first occurrence of `middle` in the name is
    considered. For example, `a.tracker.net` matches `*.tracker.*`, but
    `tracker.net` does not.
  - Any other entry must equal the name exactly.
- `blacklist_response_code`: an integer OR-ed into the flags of the error
  response, for example `3` (NXDOMAIN) or `5` (REFUSED).

If the file is missing, is not valid TOML, or has a missing or invalid key,
the program prints `ERROR:` and an explanation, then exits with status 1.

## Using it as a library

```python
from dnsproxy.config import load_config
from dnsproxy.packet import parse_request, is_blacklisted, error_response

config = load_config("config.toml")
packet = parse_request(data)
name = packet.questions[0].name
if is_blacklisted(name, config.blacklist):
    reply = error_response(data, config.blacklist_response_code)
```

### `dnsproxy.config`

- `load_config(path)` returns a frozen `Config`. It raises `ConfigError` when
  the file is unusable.
- `Config` has the fields `dns_server`, `blacklist` and
  `blacklist_response_code`. `describe()` returns a printable summary.
- `is_valid_ipv4(ip)` performs the address check used for `dns_server`.

### `dnsproxy.packet`

- `parse_request(data)` returns a `DnsPacket`, which holds a `header`
  (`DnsHeader`) and a tuple of `questions` (`DnsQuestion` with `name`, `type`
  and `qclass`). It raises `PacketError` on truncated or malformed input.
- `decode_name(data, offset)` decodes a possibly compressed name. It returns
  the name and the offset just after it, and rejects pointer loops.
- `is_blacklisted(name, patterns)` applies the matching rules described above.
- `error_response(request, flags)` builds the error reply.

### `dnsproxy.server`

- `DnsProxy(config, port=9898, host="0.0.0.0", upstream_port=53, timeout=2.0)`
  binds the listening socket. It can be used as a context manager.
- `process(data)` returns the reply for one datagram, or `None`.
- `forward(data)` relays a query upstream.
- `serve_forever()` runs the receive loop until `close()` is called.
- `close()` releases both sockets.
- `main(argv=None)` is the entry point of the `dnsproxy` command.

## What it does not do

- It speaks UDP over IPv4 only. It has no TCP and no IPv6.
- It uses one upstream server and does not retry.
- It keeps no cache.
- It never makes up answers of its own. A blacklisted name always gets an
  error reply.