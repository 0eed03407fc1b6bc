from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .errors import EncodingOverflow
from .nodes import Node

RECORD_TYPE_A = "A"

ALIAS_KEY_PREFIX = "landb-alias"
LOAD_MARKER = "--load-"
MAX_VALUE_LENGTH = 254


@dataclass(frozen=True)
class Endpoint:
    dns_name: str
    record_type: str = RECORD_TYPE_A
    targets: tuple[str, ...] = ()
    set_identifier: str = ""
    record_ttl: int = 0
    labels: dict[str, str] = field(default_factory=dict, compare=False, hash=False)
    provider_specific: tuple[tuple[str, str], ...] = ()


def normalize_name(dns_name: str) -> str:
    if dns_name.endswith("."):
        return dns_name[:-1]
    return dns_name


def alias_key(index: int) -> str:
    """Key for the ``index``-th value of the family (1-based)."""
    if index == 1:
        return ALIAS_KEY_PREFIX
    return f"{ALIAS_KEY_PREFIX}{index}"


def alias_token(dns_name: str, node_index: int) -> str:
    return f"{dns_name}{LOAD_MARKER}{node_index}-"


def encode(node_index: int, endpoints: Iterable[Endpoint]) -> dict[str, str]:
    """Build the ``landb-alias*`` metadata one node should carry.

    Tokens are sorted before packing so the output only depends on the set of
    A-record names. Values are filled greedily up to MAX_VALUE_LENGTH and
    overflow into ``landb-alias2``, ``landb-alias3``, ...
    """
    names = {normalize_name(ep.dns_name) for ep in endpoints if ep.record_type == RECORD_TYPE_A}
    tokens = sorted((alias_token(name, node_index), name) for name in names)

    metadata: dict[str, str] = {}
    current: list[str] = []
    current_len = 0
    for token, name in tokens:
        if len(token) > MAX_VALUE_LENGTH:
            raise EncodingOverflow(name, node_index, len(token), MAX_VALUE_LENGTH)

        needed = current_len + len(token) + (1 if current else 0)
        if needed > MAX_VALUE_LENGTH:
            metadata[alias_key(len(metadata) + 1)] = ",".join(current)
            current = []
            current_len = 0
            needed = len(token)

        current.append(token)
        current_len = needed

    if current:
        metadata[alias_key(len(metadata) + 1)] = ",".join(current)
    return metadata


def decode(nodes: Iterable[Node]) -> set[str]:
    """Recover the DNS names advertised by any of the given nodes.

    Tokens without the load marker are skipped; metadata may also be written by
    other tooling and reading must not fail on it.
    """
    names: set[str] = set()
    for node in nodes:
        for key, value in node.metadata.items():
            if not key.startswith(ALIAS_KEY_PREFIX):
                continue
            for raw in value.split(","):
                token = raw.strip()
                idx = token.rfind(LOAD_MARKER)
                # idx == 0 is a token with an empty name; nothing to advertise.
                if idx <= 0:
                    continue
                names.add(token[:idx])
    return names


def decode_endpoints(nodes: Iterable[Node]) -> list[Endpoint]:
    # The serving addresses are implied by which nodes carry an alias, so
    # decoded endpoints have no targets.
    return [Endpoint(dns_name=name, record_type=RECORD_TYPE_A) for name in sorted(decode(nodes))]
