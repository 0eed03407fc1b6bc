from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from .aliases import Endpoint, encode
from .diff import diff_metadata
from .errors import DeadlineExceeded, MutationFailure
from .logs import child_logger
from .nodes import Node
from .runtime import Deadline, NodeChange, SyncReport


class MetadataStore(Protocol):
    def upsert_metadata(self, node_id: str, metadata: dict[str, str], timeout: float | None = None) -> None: ...

    def delete_metadata_key(self, node_id: str, key: str, timeout: float | None = None) -> None: ...


class Synchronizer:
    """Converges the alias metadata of an ordered node set onto a set of endpoints.

    One call is one reconciliation pass. Nodes are handled strictly in order and
    the first failed mutation aborts the pass; nodes after it are left as they
    were. Nothing is rolled back: every pass recomputes the full desired state,
    so re-running a pass with the same endpoints finishes the job.
    """

    def __init__(self, store: MetadataStore, logger: logging.Logger | None = None):
        self.store = store
        self.log = logger or child_logger(None, "sync")

    def sync(
        self,
        nodes: Sequence[Node],
        endpoints: Iterable[Endpoint],
        deadline: Deadline | None = None,
    ) -> SyncReport:
        report = SyncReport()
        plan = self.plan(nodes, endpoints)

        for node, change in zip(nodes, plan):
            if change.skipped:
                self.log.debug("Server %s (%s) already up to date", node.id, node.name)
                report.changes.append(change)
                continue

            if deadline is not None and deadline.expired():
                raise DeadlineExceeded(
                    f"Deadline exceeded before server {node.id} ({node.name}); "
                    f"{change.node_index} of {len(nodes)} servers processed."
                )
            self._apply(node, change.upserted, change.deleted, deadline)
            report.changes.append(change)

        self.log.info(
            "Sync finished: %d server(s) updated, %d unchanged",
            len(report.mutated),
            len(report.skipped),
        )
        return report

    def plan(self, nodes: Sequence[Node], endpoints: Iterable[Endpoint]) -> list[NodeChange]:
        """Encode and diff every node without touching the store.

        Runs to completion before the first mutation, so an oversized alias
        fails the pass while every server is still untouched.
        """
        endpoints = list(endpoints)
        changes: list[NodeChange] = []
        for index, node in enumerate(nodes):
            to_upsert, to_delete = diff_metadata(node.metadata, encode(index, endpoints))
            changes.append(
                NodeChange(
                    node_id=node.id,
                    node_name=node.name,
                    node_index=index,
                    upserted=to_upsert,
                    deleted=to_delete,
                )
            )
        return changes

    def _apply(self, node: Node, to_upsert: dict[str, str], to_delete: list[str], deadline: Deadline | None) -> None:
        # Upsert first: when a value moves between keys the alias is never
        # absent from the server in between.
        if to_upsert:
            self.log.info("Updating metadata for server %s (%s): %s", node.id, node.name, to_upsert)
            try:
                self.store.upsert_metadata(node.id, to_upsert, timeout=_timeout(deadline))
            except Exception as e:
                raise MutationFailure(node.id, node.name, None, e) from e

        for key in to_delete:
            self.log.info("Deleting metadata key %s for server %s (%s)", key, node.id, node.name)
            try:
                self.store.delete_metadata_key(node.id, key, timeout=_timeout(deadline))
            except Exception as e:
                raise MutationFailure(node.id, node.name, key, e) from e


def _timeout(deadline: Deadline | None) -> float | None:
    return None if deadline is None else deadline.timeout()
