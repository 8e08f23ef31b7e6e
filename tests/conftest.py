"""In-memory admin API used by the tests.

``FakeNetwork`` hands out session objects to ``AdminClient``; each session
routes requests by ``host:port`` to a ``FakeCluster``, which serves root
metadata, paginated collections and create requests with 409 on duplicate
ids. Every request is recorded in ``network.log``.
"""

import json
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from cluster_transfer.models.migration import Endpoint, MigrationConfig, MigrationPlan
from cluster_transfer.services.http_client import AdminClient


def make_response(status: int, body: Any = None, raw: Optional[bytes] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode()
    else:
        response._content = b""
    response.headers["Content-Type"] = "application/json"
    return response


class FakeCluster:
    def __init__(self, name: str, endpoint: Endpoint, version: str = "0.10.1", plugins=None, page_size: int = 100):
        self.name = name
        self.endpoint = endpoint
        self.version = version
        self.plugins = plugins if plugins is not None else ["acl", "key-auth", "rate-limiting"]
        self.page_size = page_size
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        # (method, path with query) -> response, served instead of the default behaviour
        self.overrides: Dict[Tuple[str, str], requests.Response] = {}
        # record id -> status returned when that record is POSTed
        self.reject_ids: Dict[str, int] = {}
        self.down = False

    def add(self, path: str, *records: Dict[str, Any]):
        self.collections.setdefault(path, []).extend(records)

    def records(self, path: str) -> List[Dict[str, Any]]:
        return self.collections.get(path, [])

    def handle(self, method: str, path: str, query: str, payload: Any) -> requests.Response:
        key = (method, f"{path}?{query}" if query else path)
        if key in self.overrides:
            return self.overrides[key]

        if method == "GET" and path == "/":
            return make_response(200, {
                "version": self.version,
                "plugins": {"available_on_server": {name: True for name in self.plugins}},
            })

        if method == "GET":
            offset = int(parse_qs(query).get("offset", ["0"])[0])
            records = self.records(path)
            body: Dict[str, Any] = {"data": records[offset:offset + self.page_size]}
            if offset + self.page_size < len(records):
                body["next"] = f"{self.endpoint.base_url}{path}?offset={offset + self.page_size}"
            return make_response(200, body)

        if method == "POST":
            record_id = payload.get("id")
            if record_id in self.reject_ids:
                return make_response(self.reject_ids[record_id], {"message": "rejected"})
            if any(existing.get("id") == record_id for existing in self.records(path)):
                return make_response(409, {"id": f"already exists with value '{record_id}'"})
            self.add(path, dict(payload))
            return make_response(201, payload)

        return make_response(405, {"message": "Method not allowed"})


class FakeSession:
    def __init__(self, network: "FakeNetwork"):
        self.network = network
        self.closed = False

    def request(self, method, url, json=None, headers=None, timeout=None, allow_redirects=True):
        parts = urlsplit(url)
        cluster = self.network.clusters.get(parts.netloc)
        path = f"{parts.path}?{parts.query}" if parts.query else parts.path
        self.network.log.append((cluster.name if cluster else parts.netloc, method, path))
        self.network.timeouts.append(timeout)

        if cluster is None or cluster.down:
            raise requests.exceptions.ConnectionError(f"connection refused: {parts.netloc}")
        return cluster.handle(method, parts.path, parts.query, json)

    def close(self):
        self.closed = True
        self.network.closed += 1


class FakeNetwork:
    def __init__(self):
        self.clusters: Dict[str, FakeCluster] = {}
        self.log: List[Tuple[str, str, str]] = []
        self.timeouts: List[float] = []
        self.opened = 0
        self.closed = 0

    def add_cluster(self, name: str, port: int, **kwargs) -> FakeCluster:
        endpoint = Endpoint("127.0.0.1", port)
        cluster = FakeCluster(name, endpoint, **kwargs)
        self.clusters[str(endpoint)] = cluster
        return cluster

    def session(self) -> FakeSession:
        self.opened += 1
        return FakeSession(self)

    def requests_to(self, name: str, method: Optional[str] = None) -> List[Tuple[str, str, str]]:
        return [
            entry for entry in self.log
            if entry[0] == name and (method is None or entry[1] == method)
        ]

    def posts(self, name: str = "destination") -> List[str]:
        return [path for _, _, path in self.requests_to(name, "POST")]


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def source(network):
    return network.add_cluster("source", 8001)


@pytest.fixture
def destination(network):
    return network.add_cluster("destination", 9001)


@pytest.fixture
def client(network):
    return AdminClient(timeout_ms=2500, session_factory=network.session)


@pytest.fixture
def make_config(source, destination):
    def _make(plan=None, check_versions=True):
        return MigrationConfig(
            source=source.endpoint,
            destination=destination.endpoint,
            check_versions=check_versions,
            plan=MigrationPlan.from_dict(plan) if plan is not None else MigrationPlan.default(),
        )
    return _make
