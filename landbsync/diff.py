from __future__ import annotations

from typing import Mapping

from .aliases import ALIAS_KEY_PREFIX


def diff_metadata(current: Mapping[str, str], desired: Mapping[str, str]) -> tuple[dict[str, str], list[str]]:
    """Compute the minimal mutation turning ``current`` into ``desired``.

    Returns (to_upsert, to_delete). Only keys of the ``landb-alias`` family are
    ever scheduled for deletion; foreign metadata on the server is left alone.
    """
    to_upsert = {k: v for k, v in desired.items() if k not in current or current[k] != v}
    to_delete = sorted(k for k in current if k.startswith(ALIAS_KEY_PREFIX) and k not in desired)
    return to_upsert, to_delete
