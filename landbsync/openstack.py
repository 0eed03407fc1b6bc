from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .errors import OpenStackError
from .logs import child_logger
from .nodes import Node
from .settings import Settings


class NovaClient:
    """Minimal Keystone v3 + Nova client: list servers, edit server metadata.

    Tokens are fetched lazily and refreshed once when Nova answers 401.
    """

    def __init__(
        self,
        auth_url: str,
        username: str,
        password: str,
        user_domain_name: str,
        project_name: str,
        project_domain_id: str,
        region_name: str,
        interface: str = "public",
        verify_tls: bool = True,
        timeout_s: float = 10.0,
        logger: logging.Logger | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.auth_url = _identity_v3(auth_url)
        self.username = username
        self.password = password
        self.user_domain_name = user_domain_name
        self.project_name = project_name
        self.project_domain_id = project_domain_id
        self.region_name = region_name
        self.interface = interface
        self.timeout_s = float(timeout_s)
        self.log = logger or child_logger(None, "openstack")
        self._http = httpx.Client(verify=verify_tls, timeout=self.timeout_s, follow_redirects=False, transport=transport)
        self._token: str | None = None
        self._compute_url: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings, logger: logging.Logger | None = None, **kwargs: Any) -> "NovaClient":
        return cls(
            auth_url=settings.os_auth_url or "",
            username=settings.os_username or "",
            password=settings.os_password or "",
            user_domain_name=settings.os_user_domain_name or "",
            project_name=settings.os_project_name or "",
            project_domain_id=settings.os_project_domain_id or "",
            region_name=settings.os_region_name or "",
            interface=settings.os_interface,
            verify_tls=settings.verify_tls,
            timeout_s=settings.request_timeout_s,
            logger=logger,
            **kwargs,
        )

    def close(self) -> None:
        self._http.close()

    # -- auth -----------------------------------------------------------------

    def authenticate(self, timeout: float | None = None) -> None:
        body = {
            "auth": {
                "identity": {
                    "methods": ["password"],
                    "password": {
                        "user": {
                            "name": self.username,
                            "domain": {"name": self.user_domain_name},
                            "password": self.password,
                        }
                    },
                },
                "scope": {
                    "project": {
                        "name": self.project_name,
                        "domain": {"id": self.project_domain_id},
                    }
                },
            }
        }
        try:
            resp = self._http.post(f"{self.auth_url}/auth/tokens", json=body, timeout=self._timeout(timeout))
        except httpx.HTTPError as e:
            raise OpenStackError(f"Keystone authentication failed: {type(e).__name__}: {e}") from e
        if resp.status_code not in (200, 201):
            raise OpenStackError(f"Keystone authentication failed: HTTP {resp.status_code}", resp.status_code)

        token = resp.headers.get("X-Subject-Token")
        if not token:
            raise OpenStackError("Keystone response did not include X-Subject-Token.")
        try:
            catalog = resp.json()["token"].get("catalog", [])
            self._compute_url = self._find_compute_endpoint(catalog)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise OpenStackError(f"Malformed Keystone token response: {type(e).__name__}: {e}") from e
        self._token = token
        self.log.debug("Authenticated against %s, compute endpoint %s", self.auth_url, self._compute_url)

    def _find_compute_endpoint(self, catalog: list[dict[str, Any]]) -> str:
        for service in catalog:
            if service.get("type") != "compute":
                continue
            for ep in service.get("endpoints", []):
                if ep.get("interface") != self.interface:
                    continue
                if self.region_name and self.region_name not in (ep.get("region"), ep.get("region_id")):
                    continue
                return str(ep["url"]).rstrip("/")
        raise OpenStackError(
            f"No compute endpoint for region '{self.region_name}' and interface '{self.interface}' in the catalog."
        )

    # -- nova -----------------------------------------------------------------

    def list_servers(self, status: str = "ACTIVE", timeout: float | None = None) -> list[Node]:
        """All servers in the project with the given status, following pagination."""
        nodes: list[Node] = []
        url: str | None = "/servers/detail"
        params: dict[str, str] | None = {"status": status}
        while url:
            resp = self._request("GET", url, params=params, timeout=timeout)
            try:
                data = resp.json()
                nodes.extend(_server_node(server) for server in data["servers"])
                url = _next_link(data.get("servers_links") or [])
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise OpenStackError(f"Malformed server listing from {url}: {type(e).__name__}: {e}") from e
            # the next link already carries the query string
            params = None
        return nodes

    def upsert_metadata(self, node_id: str, metadata: dict[str, str], timeout: float | None = None) -> None:
        self._request("POST", f"/servers/{quote(node_id, safe='')}/metadata", json={"metadata": metadata}, timeout=timeout)

    def delete_metadata_key(self, node_id: str, key: str, timeout: float | None = None) -> None:
        self._request("DELETE", f"/servers/{quote(node_id, safe='')}/metadata/{quote(key, safe='')}", timeout=timeout)

    def _request(self, method: str, url: str, timeout: float | None = None, **kwargs: Any) -> httpx.Response:
        if self._token is None:
            self.authenticate(timeout=timeout)

        resp = self._send(method, url, timeout, **kwargs)
        if resp.status_code == 401:
            self.log.info("Token rejected by Nova, re-authenticating")
            self.authenticate(timeout=timeout)
            resp = self._send(method, url, timeout, **kwargs)

        if resp.status_code >= 400:
            raise OpenStackError(f"{method} {url} failed: HTTP {resp.status_code}: {resp.text[:200]}", resp.status_code)
        return resp

    def _send(self, method: str, url: str, timeout: float | None, **kwargs: Any) -> httpx.Response:
        if not url.startswith("http"):
            url = f"{self._compute_url}{url}"
        try:
            return self._http.request(
                method,
                url,
                headers={"X-Auth-Token": self._token or "", "Accept": "application/json"},
                timeout=self._timeout(timeout),
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise OpenStackError(f"{method} {url} failed: {type(e).__name__}: {e}") from e

    def _timeout(self, timeout: float | None) -> float:
        # None would disable the httpx timeout entirely.
        if timeout is None:
            return self.timeout_s
        return min(timeout, self.timeout_s)


def _identity_v3(auth_url: str) -> str:
    url = auth_url.rstrip("/")
    if not url.endswith("/v3"):
        url = f"{url}/v3"
    return url


def _next_link(links: list[dict[str, Any]]) -> str | None:
    for link in links:
        if link.get("rel") == "next":
            return link.get("href")
    return None


def _server_node(server: dict[str, Any]) -> Node:
    return Node(
        id=str(server["id"]),
        name=str(server.get("name", "")),
        metadata={str(k): str(v) for k, v in (server.get("metadata") or {}).items()},
    )
