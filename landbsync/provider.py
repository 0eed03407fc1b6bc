from __future__ import annotations

import logging
from threading import Lock
from typing import Iterable, Protocol

from .aliases import RECORD_TYPE_A, Endpoint, decode, decode_endpoints, normalize_name
from .api_models import Changes, DomainFilter
from .logs import child_logger
from .nodes import Node
from .reconciler import MetadataStore, Synchronizer
from .runtime import Deadline, SyncReport
from .settings import Settings


class Inventory(Protocol):
    def list_ingress_nodes(self, label_selector: str, deadline: Deadline | None = None) -> list[Node]: ...


class LandbProvider:
    """Business logic behind the ExternalDNS webhook endpoints."""

    def __init__(
        self,
        settings: Settings,
        inventory: Inventory,
        store: MetadataStore,
        logger: logging.Logger | None = None,
    ):
        self.settings = settings
        self.inventory = inventory
        self.log = logger or child_logger(None, "provider")
        self.synchronizer = Synchronizer(store, logger=self.log.getChild("sync"))
        # Overlapping passes would race on the same servers' metadata.
        self._lock = Lock()

    def new_deadline(self) -> Deadline:
        return Deadline(self.settings.sync_timeout_s)

    def negotiate(self) -> DomainFilter:
        return DomainFilter(include=list(self.settings.domain_filter))

    def records(self, deadline: Deadline | None = None) -> list[Endpoint]:
        nodes = self.inventory.list_ingress_nodes(self.settings.ingress_label, deadline)
        return decode_endpoints(nodes)

    def adjust_endpoints(self, endpoints: list[Endpoint]) -> list[Endpoint]:
        return endpoints

    def apply_changes(self, changes: Changes, deadline: Deadline | None = None) -> SyncReport | None:
        """Fold a plan into the advertised alias set and converge every node on it.

        Returns None in dry-run mode, where nothing is written.
        """
        with self._lock:
            nodes = self.inventory.list_ingress_nodes(self.settings.ingress_label, deadline)
            desired = desired_endpoints(decode(nodes), changes)

            if self.settings.dry_run:
                self.log.info(
                    "Dry run enabled, skipping update of %d server(s); desired aliases: %s",
                    len(nodes),
                    ", ".join(ep.dns_name for ep in desired) or "(none)",
                )
                return None
            return self.synchronizer.sync(nodes, desired, deadline)


def desired_endpoints(current_names: Iterable[str], changes: Changes) -> list[Endpoint]:
    """Apply deletes, updates and creates (in that order) to the current names."""
    desired: dict[str, Endpoint] = {name: Endpoint(dns_name=name, record_type=RECORD_TYPE_A) for name in current_names}

    for m in changes.delete:
        desired.pop(normalize_name(m.dns_name), None)
    for m in changes.update_old:
        desired.pop(normalize_name(m.dns_name), None)
    for m in list(changes.update_new) + list(changes.create):
        ep = m.to_endpoint()
        desired[normalize_name(ep.dns_name)] = ep

    return [desired[name] for name in sorted(desired)]
