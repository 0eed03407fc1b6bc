"""LanDB alias synchronizer (landbsync).

ExternalDNS webhook provider that advertises DNS names as round-robin LanDB
aliases by writing ``landb-alias*`` metadata onto the OpenStack servers behind
a cluster's ingress nodes.

 - alias codec: endpoints <-> bounded-length metadata values
 - metadata differ: minimal upsert/delete per node
 - synchronizer: ordered, sequential, idempotent reconciliation pass

Every pass recomputes the full desired state; nothing is persisted.
"""
