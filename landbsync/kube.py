from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from .errors import KubernetesError
from .logs import child_logger
from .settings import Settings

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


class KubeClient:
    """Lists cluster node names through the Kubernetes API."""

    def __init__(
        self,
        api_url: str,
        token: str | None = None,
        verify: bool | str = True,
        timeout_s: float = 10.0,
        logger: logging.Logger | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout_s = float(timeout_s)
        self.log = logger or child_logger(None, "kube")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(
            base_url=self.api_url,
            headers=headers,
            verify=verify,
            timeout=self.timeout_s,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, logger: logging.Logger | None = None, **kwargs: Any) -> "KubeClient":
        """Explicit API URL from the settings, otherwise the in-cluster service account."""
        if settings.kube_api_url:
            return cls(
                settings.kube_api_url,
                token=settings.kube_token,
                verify=settings.verify_tls,
                timeout_s=settings.request_timeout_s,
                logger=logger,
                **kwargs,
            )

        host = os.getenv("KUBERNETES_SERVICE_HOST")
        port = os.getenv("KUBERNETES_SERVICE_PORT", "443")
        if not host:
            raise KubernetesError("Not running in a cluster and LANDBSYNC_KUBE_API_URL is not set.")
        try:
            with open(os.path.join(SERVICE_ACCOUNT_DIR, "token"), encoding="utf-8") as f:
                token = f.read().strip()
        except OSError as e:
            raise KubernetesError(f"Cannot read service account token: {e}") from e
        if ":" in host:
            host = f"[{host}]"
        return cls(
            f"https://{host}:{port}",
            token=token,
            verify=os.path.join(SERVICE_ACCOUNT_DIR, "ca.crt"),
            timeout_s=settings.request_timeout_s,
            logger=logger,
            **kwargs,
        )

    def close(self) -> None:
        self._http.close()

    def list_node_names(self, label_selector: str, timeout: float | None = None) -> list[str]:
        """Names of the nodes matching ``label_selector`` (``key`` or ``key=value``)."""
        names: list[str] = []
        params: dict[str, str] = {"labelSelector": label_selector}
        while True:
            try:
                resp = self._http.get("/api/v1/nodes", params=params, timeout=self._timeout(timeout))
            except httpx.HTTPError as e:
                raise KubernetesError(f"Listing nodes with selector {label_selector!r} failed: {type(e).__name__}: {e}") from e
            if resp.status_code != 200:
                raise KubernetesError(
                    f"Listing nodes with selector {label_selector!r} failed: HTTP {resp.status_code}",
                    resp.status_code,
                )
            try:
                data = resp.json()
                names.extend(str(item["metadata"]["name"]) for item in data["items"] or [])
                cont = (data.get("metadata") or {}).get("continue")
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise KubernetesError(f"Malformed node list for selector {label_selector!r}: {type(e).__name__}: {e}") from e
            if not cont:
                break
            params = {"labelSelector": label_selector, "continue": cont}
        self.log.debug("Selector %r matched %d node(s)", label_selector, len(names))
        return names

    def _timeout(self, timeout: float | None) -> float:
        if timeout is None:
            return self.timeout_s
        return min(timeout, self.timeout_s)
