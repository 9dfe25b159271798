# sentinelnet

Networking building blocks for a peer-to-peer file synchroniser. It finds
peers on the local network, scores the links between them and decides when
the mesh should be rebuilt, asks a STUN server for the host's public address,
defines the binary format in which file deltas and whole files travel, and
provides AES-256 encryption and SHA-256 hashing helpers.

## Modules

| Module | Purpose |
| --- | --- |
| `sentinelnet.models` | Shared records: `PeerInfo`, `FileInfo`, `StreamingSample`, `TimeSeriesData`, `ForecastConfig`, `MLModelMetadata` |
| `sentinelnet.discovery` | `Discovery`, UDP broadcast discovery of peers sharing a session code; `build_discovery_packet`, `parse_discovery_packet` |
| `sentinelnet.topology` | Pure functions over `NetworkNode` mappings: `optimal_peers`, `minimum_spanning_tree`, `load_balanced_peers`, `network_efficiency`, `network_diameter`, `edge_weight` |
| `sentinelnet.remesh` | `Remesh`, which tracks latency and bandwidth per peer, decides when to re-mesh and can run a background measuring loop |
| `sentinelnet.nat_traversal` | `NATTraversal` for STUN address discovery and UDP hole punching; `build_binding_request`, `parse_binding_response` |
| `sentinelnet.protocol` | `DeltaData`, `DeltaChunk`, `MessageType`; payload encoding (`encode_delta`, `decode_delta`, `encode_file_payload`, `decode_file_payload`, `wrap_payload`, `unwrap_payload`) and socket framing (`write_frame`, `read_frame`) |
| `sentinelnet.crypto` | `aes_encrypt`/`aes_decrypt` (AES-256-CBC, random IV prepended), `pad_data`/`unpad_data`, `hash_data`, `hex_to_bytes`, `generate_random_key`, `public_key_to_pem`, `looks_like_pem` |

## Examples

Choosing peers from measured latency and bandwidth:

```python
from sentinelnet.remesh import Remesh

mesh = Remesh()
mesh.update_peer_latency("peer-a", 20.0)
mesh.update_peer_bandwidth("peer-a", 50.0)
mesh.update_peer_latency("peer-b", 180.0)
mesh.update_peer_bandwidth("peer-b", 5.0)

if mesh.needs_remesh():                     # peer-b is above the 100 ms threshold
    print(mesh.get_optimal_connections())   # lowest combined score first, at most five
    print(mesh.get_optimal_topology())      # spanning-tree edges as (peer, peer) pairs
```

`Remesh` is also a context manager: inside a `with` block it measures and
re-evaluates every `interval` seconds (10 by default) in a daemon thread.

Encrypting data with a fresh key:

```python
from sentinelnet.crypto import aes_decrypt, aes_encrypt, generate_random_key

key = generate_random_key(32)
sealed = aes_encrypt(b"hello", key)
assert aes_decrypt(sealed, key) == b"hello"
```

A wrong key or damaged ciphertext raises `DecryptionError`; a key shorter
than 32 bytes raises `CryptoError`.

Encoding a delta and sending it over a connected socket:

```python
from sentinelnet.protocol import DeltaChunk, DeltaData, MessageType, decode_delta, encode_delta, write_frame

delta = DeltaData(file_path="docs/a.txt", chunks=[DeltaChunk(0, 5, "abc", b"hello")])
payload = encode_delta(delta)
assert decode_delta(payload) == delta
# write_frame(sock, MessageType.DELTA, payload)
```

Finding peers on the same session:

```python
from sentinelnet.discovery import Discovery

with Discovery("ABC123") as discovery:
    ...
    print(discovery.peers())
```

Asking a STUN server for the public address:

```python
from sentinelnet.nat_traversal import NATTraversal

ip, port = NATTraversal().discover_external_address()   # stun.l.google.com:19302
```

Failures raise `NatTraversalError`. `NATTraversal.nat_type()` does no
classification and always returns `"Unknown"`.

## Wire format

A frame is a type byte (`1` delta, `2` file, `3` heartbeat), a 64-bit
little-endian length, then the payload. Frames above 100 MiB, and payloads
that are truncated or have trailing bytes, raise `FrameError`. Inside
payloads, lengths are big-endian (32-bit for strings and counts, 64-bit for
offsets and data). `wrap_payload` prefixes a flag byte, `0x01` for encrypted
and `0x00` for plain; `unwrap_payload` returns data without a recognised flag
unchanged.

Discovery packets are UDP broadcasts on port 8081 of the form
`DISCOVERY|<session code>|<port>|<node id>`; packets for another session are
ignored.

## What the package does not do

It has no file-transfer client or server: there is no connection pool, no
TCP listener and nothing that reads a file from disk and sends it to a peer.
`protocol` gives the frame and payload formats and `write_frame`/`read_frame`
work on a socket you have opened yourself. There is no key or certificate
management, peer authentication, access control or rate limiting;
`crypto` offers the encryption primitives only, and keys are yours to
manage. There is no command-line program.

## Requirements

Python 3.10 or later and the `cryptography` library. The tests use `pytest`
and are installed with the `test` extra.