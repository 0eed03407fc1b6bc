from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Node:
    """One infrastructure node (an OpenStack server) and its metadata."""

    id: str
    name: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


def order_nodes(nodes: Iterable[Node], label_key: str | None = None) -> list[Node]:
    """Return nodes sorted ascending by id, optionally keeping only labelled ones.

    Alias tokens embed the position of a node in this list, so the order must
    depend on the node set only, never on the order it was listed in.
    """
    if label_key:
        kept = [n for n in nodes if label_key in n.metadata]
    else:
        kept = list(nodes)
    return sorted(kept, key=lambda n: n.id)
