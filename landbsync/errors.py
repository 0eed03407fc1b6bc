from __future__ import annotations


class LandbSyncError(Exception):
    """Base class for everything the engine and its adapters raise."""


class ConfigurationError(LandbSyncError):
    pass


class ListingFailure(LandbSyncError):
    """The ordered node set could not be obtained; nothing was mutated."""


class EncodingOverflow(LandbSyncError):
    def __init__(self, dns_name: str, node_index: int, length: int, limit: int):
        self.dns_name = dns_name
        self.node_index = node_index
        self.length = length
        self.limit = limit
        super().__init__(
            f"Alias for '{dns_name}' on node {node_index} is {length} characters long "
            f"and cannot fit in a metadata value (max {limit})."
        )


class MutationFailure(LandbSyncError):
    def __init__(self, node_id: str, node_name: str, key: str | None, cause: Exception):
        self.node_id = node_id
        self.node_name = node_name
        self.key = key
        self.cause = cause
        if key is None:
            what = "update metadata"
        else:
            what = f"delete metadata key '{key}'"
        super().__init__(f"Failed to {what} for server {node_id} ({node_name}): {cause}")


class DeadlineExceeded(LandbSyncError):
    pass


class OpenStackError(LandbSyncError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class KubernetesError(LandbSyncError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
