from __future__ import annotations

import logging
from typing import Protocol

from .errors import KubernetesError, ListingFailure, OpenStackError
from .logs import child_logger
from .nodes import Node, order_nodes
from .runtime import Deadline


class NodeNameSource(Protocol):
    def list_node_names(self, label_selector: str, timeout: float | None = None) -> list[str]: ...


class ServerSource(Protocol):
    def list_servers(self, status: str = "ACTIVE", timeout: float | None = None) -> list[Node]: ...


class NodeInventory:
    """Joins labelled cluster nodes with the OpenStack servers that back them."""

    def __init__(self, kube: NodeNameSource, nova: ServerSource, logger: logging.Logger | None = None):
        self.kube = kube
        self.nova = nova
        self.log = logger or child_logger(None, "inventory")

    def list_ingress_nodes(self, label_selector: str, deadline: Deadline | None = None) -> list[Node]:
        timeout = deadline.timeout() if deadline else None
        try:
            names = set(self.kube.list_node_names(label_selector, timeout=timeout))
        except KubernetesError as e:
            raise ListingFailure(f"Failed to get ingress node names from Kubernetes: {e}") from e

        timeout = deadline.timeout() if deadline else None
        try:
            servers = self.nova.list_servers(status="ACTIVE", timeout=timeout)
        except OpenStackError as e:
            raise ListingFailure(f"Failed to list OpenStack servers: {e}") from e

        matching = [s for s in servers if s.name in names]
        missing = names - {s.name for s in matching}
        if missing:
            self.log.warning("No ACTIVE OpenStack server for node(s): %s", ", ".join(sorted(missing)))
        return order_nodes(matching)
