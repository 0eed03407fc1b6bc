import json

import httpx
import pytest

from landbsync.errors import OpenStackError
from landbsync.openstack import NovaClient

COMPUTE = "https://nova.example.org/v2.1"


def _catalog():
    return {
        "token": {
            "catalog": [
                {"type": "identity", "endpoints": [{"interface": "public", "region": "cern", "url": "https://keystone/v3"}]},
                {
                    "type": "compute",
                    "endpoints": [
                        {"interface": "internal", "region": "cern", "url": "https://internal-nova/v2.1"},
                        {"interface": "public", "region": "other", "url": "https://other-nova/v2.1"},
                        {"interface": "public", "region": "cern", "url": COMPUTE + "/"},
                    ],
                },
            ]
        }
    }


class FakeOpenStack:
    def __init__(self):
        self.requests = []
        self.tokens_issued = 0
        self.reject_next = False
        self.servers = {
            "s1": {"id": "s1", "name": "ingress-1", "metadata": {"landb-alias": "a--load-0-"}},
            "s2": {"id": "s2", "name": "ingress-2", "metadata": {}},
            "s3": {"id": "s3", "name": "worker-1", "metadata": None},
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v3/auth/tokens":
            self.tokens_issued += 1
            return httpx.Response(201, json=_catalog(), headers={"X-Subject-Token": f"tok-{self.tokens_issued}"})

        if self.reject_next:
            self.reject_next = False
            return httpx.Response(401, json={"error": "expired"})

        if path == "/v2.1/servers/detail":
            if request.url.params.get("marker") == "s2":
                return httpx.Response(200, json={"servers": [self.servers["s3"]]})
            return httpx.Response(
                200,
                json={
                    "servers": [self.servers["s1"], self.servers["s2"]],
                    "servers_links": [{"rel": "next", "href": f"{COMPUTE}/servers/detail?status=ACTIVE&marker=s2"}],
                },
            )
        if path.endswith("/metadata") and request.method == "POST":
            server_id = path.split("/")[-2]
            if server_id not in self.servers:
                return httpx.Response(404, json={"itemNotFound": {}})
            self.servers[server_id]["metadata"] = {**(self.servers[server_id]["metadata"] or {}), **json.loads(request.content)["metadata"]}
            return httpx.Response(200, json={"metadata": self.servers[server_id]["metadata"]})
        if "/metadata/" in path and request.method == "DELETE":
            parts = path.split("/")
            self.servers[parts[-3]]["metadata"].pop(parts[-1], None)
            return httpx.Response(204)
        return httpx.Response(404)


@pytest.fixture
def fake():
    return FakeOpenStack()


@pytest.fixture
def nova(fake):
    return NovaClient(
        auth_url="https://keystone.example.org",
        username="svc",
        password="secret",
        user_domain_name="Default",
        project_name="ingress",
        project_domain_id="default",
        region_name="cern",
        transport=httpx.MockTransport(fake),
    )


def test_authenticates_with_password_scope(nova, fake):
    nova.authenticate()
    body = json.loads(fake.requests[0].content)
    assert fake.requests[0].url == "https://keystone.example.org/v3/auth/tokens"
    assert body["auth"]["identity"]["password"]["user"] == {"name": "svc", "domain": {"name": "Default"}, "password": "secret"}
    assert body["auth"]["scope"]["project"] == {"name": "ingress", "domain": {"id": "default"}}


def test_list_servers_follows_pagination(nova, fake):
    nodes = nova.list_servers()

    assert [n.id for n in nodes] == ["s1", "s2", "s3"]
    assert nodes[0].metadata == {"landb-alias": "a--load-0-"}
    assert nodes[2].metadata == {}
    first = fake.requests[1]
    assert str(first.url).startswith(COMPUTE + "/servers/detail")
    assert first.url.params["status"] == "ACTIVE"
    assert first.headers["X-Auth-Token"] == "tok-1"


def test_upsert_and_delete_metadata(nova, fake):
    nova.upsert_metadata("s2", {"landb-alias": "b--load-1-"})
    nova.delete_metadata_key("s1", "landb-alias")

    assert fake.servers["s2"]["metadata"] == {"landb-alias": "b--load-1-"}
    assert fake.servers["s1"]["metadata"] == {}
    assert fake.requests[-1].method == "DELETE"
    assert fake.requests[-1].url.path == "/v2.1/servers/s1/metadata/landb-alias"


def test_reauthenticates_once_on_401(nova, fake):
    nova.authenticate()
    fake.reject_next = True

    nova.upsert_metadata("s1", {"landb-alias": "c--load-0-"})

    assert fake.tokens_issued == 2
    assert fake.requests[-1].headers["X-Auth-Token"] == "tok-2"


def test_http_errors_raise_openstack_error(nova):
    with pytest.raises(OpenStackError) as exc:
        nova.upsert_metadata("missing", {"landb-alias": "x--load-0-"})
    assert exc.value.status_code == 404


def test_missing_compute_endpoint(fake):
    client = NovaClient(
        auth_url="https://keystone.example.org/v3/",
        username="u",
        password="p",
        user_domain_name="d",
        project_name="p",
        project_domain_id="d",
        region_name="nowhere",
        transport=httpx.MockTransport(fake),
    )
    with pytest.raises(OpenStackError, match="No compute endpoint"):
        client.list_servers()


def test_transport_errors_are_wrapped():
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    client = NovaClient("https://k", "u", "p", "d", "p", "d", "cern", transport=httpx.MockTransport(boom))
    with pytest.raises(OpenStackError, match="ConnectError"):
        client.list_servers()


def _listing_client(listing):
    def handler(request):
        if request.url.path == "/v3/auth/tokens":
            return httpx.Response(201, json=_catalog(), headers={"X-Subject-Token": "tok"})
        return listing

    return NovaClient("https://keystone.example.org", "u", "p", "d", "p", "d", "cern", transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "listing",
    [
        httpx.Response(200, text="<html>proxy error</html>"),
        httpx.Response(200, json={"servers": [{"name": "ingress-1"}]}),
        httpx.Response(200, json={"error": "no servers key"}),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
def test_malformed_listing_raises_openstack_error(listing):
    with pytest.raises(OpenStackError, match="Malformed server listing"):
        _listing_client(listing).list_servers()


def test_malformed_token_response_raises_openstack_error():
    def handler(request):
        return httpx.Response(201, text="not json", headers={"X-Subject-Token": "tok"})

    client = NovaClient("https://k", "u", "p", "d", "p", "d", "cern", transport=httpx.MockTransport(handler))
    with pytest.raises(OpenStackError, match="Malformed Keystone"):
        client.authenticate()
