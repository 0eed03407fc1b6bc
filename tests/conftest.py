import os as _os
import sys

import pytest

# Ensure project root is importable (so `import landbsync` and `import cli` work without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from landbsync.aliases import Endpoint  # noqa: E402
from landbsync.nodes import Node  # noqa: E402


class FakeMetadataStore:
    """Records every call and applies it to an in-memory copy of each server's metadata."""

    def __init__(self, nodes=(), fail_on=None):
        self.metadata = {n.id: dict(n.metadata) for n in nodes}
        self.calls = []
        # (op, node_id) pairs that raise, op being "upsert" or "delete"
        self.fail_on = set(fail_on or ())

    def upsert_metadata(self, node_id, metadata, timeout=None):
        self.calls.append(("upsert", node_id, dict(metadata)))
        if ("upsert", node_id) in self.fail_on:
            raise RuntimeError(f"upsert refused for {node_id}")
        self.metadata.setdefault(node_id, {}).update(metadata)

    def delete_metadata_key(self, node_id, key, timeout=None):
        self.calls.append(("delete", node_id, key))
        if ("delete", node_id) in self.fail_on:
            raise RuntimeError(f"delete refused for {node_id}")
        self.metadata.get(node_id, {}).pop(key, None)

    def nodes(self, names=None):
        names = names or {}
        return [Node(id=i, name=names.get(i, i), metadata=dict(md)) for i, md in sorted(self.metadata.items())]


class FakeInventory:
    def __init__(self, store, names=None, error=None):
        self.store = store
        self.names = names or {}
        self.error = error
        self.selectors = []

    def list_ingress_nodes(self, label_selector, deadline=None):
        self.selectors.append(label_selector)
        if self.error is not None:
            raise self.error
        return self.store.nodes(self.names)


def a(name):
    return Endpoint(dns_name=name, record_type="A")


@pytest.fixture
def three_nodes():
    return [
        Node(id="srv-a", name="ingress-1", metadata={"landb-set": "x"}),
        Node(id="srv-b", name="ingress-2", metadata={}),
        Node(id="srv-c", name="ingress-3", metadata={"cern-services": "true"}),
    ]
