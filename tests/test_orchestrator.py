import pytest

from cluster_transfer.models.migration import MigrationStatus
from cluster_transfer.orchestrator import MigrationOrchestrator

from conftest import make_response


def populate(source):
    source.page_size = 2
    source.add("/apis/", {"id": "a1", "name": "one"}, {"id": "a2", "name": "two"}, {"id": "a3", "name": "three"})
    source.add("/consumers/", {"id": "c1", "username": "alice"}, {"id": "c2", "username": "bob"})
    source.add("/plugins/", {"id": "p1", "name": "rate-limiting", "api_id": "a1"})
    source.add("/consumers/c1/acls/", {"id": "acl1", "group": "admin"}, {"id": "acl2", "group": "dev"})
    source.add("/consumers/c1/key-auth/", {"id": "k1", "key": "secret"})
    source.add("/consumers/c2/acls/", {"id": "acl3", "group": "dev"})
    source.add("/oauth2_tokens/", {"id": "t1", "access_token": "abc"})


def run(config, client):
    return MigrationOrchestrator(config, client=client).run_migration()


def test_scenario_a_paginated_collection(make_config, client, source, destination, network):
    source.page_size = 2
    source.add("/apis/", {"id": "a1"}, {"id": "a2"}, {"id": "a3"})

    result = run(make_config([{"collection": "/apis/"}]), client)

    assert result.status == MigrationStatus.COMPLETED
    assert network.posts() == ["/apis/"] * 3
    assert [r["id"] for r in destination.records("/apis/")] == ["a1", "a2", "a3"]
    assert result.total_records_created == 3


def test_scenario_b_relations_follow_their_parent(make_config, client, source, network):
    source.add("/consumers/", {"id": "c1", "username": "alice"})
    source.add("/consumers/c1/acls/", {"id": "acl1", "group": "admin"}, {"id": "acl2", "group": "dev"})

    result = run(make_config([
        {"collection": "/consumers/"},
        {"collection": "/consumers/", "relation": "acls"},
    ]), client)

    assert result.succeeded
    assert network.posts() == ["/consumers/", "/consumers/c1/acls/", "/consumers/c1/acls/"]


def test_scenario_c_existing_record_is_skipped(make_config, client, source, destination):
    source.add("/apis/", {"id": "a1"}, {"id": "a2"})
    destination.add("/apis/", {"id": "a1", "name": "kept"})

    result = run(make_config([{"collection": "/apis/"}]), client)

    assert result.succeeded
    assert result.steps[0].records_created == 1
    assert result.steps[0].records_skipped == 1
    assert destination.records("/apis/") == [{"id": "a1", "name": "kept"}, {"id": "a2"}]


def test_scenario_d_plugin_mismatch_issues_no_migration_requests(make_config, client, source, destination, network):
    populate(source)
    destination.plugins = ["acl", "key-auth"]

    result = run(make_config(), client)

    assert result.status == MigrationStatus.ABORTED
    assert result.error["error"] == "IncompatiblePluginsError"
    assert result.error["context"]["missing_on_destination"] == ["rate-limiting"]
    assert all(path == "/" for _, _, path in network.log)
    assert network.posts() == []


def test_version_mismatch_aborts(make_config, client, source, destination, network):
    populate(source)
    destination.version = "0.11.0"

    result = run(make_config(), client)

    assert result.status == MigrationStatus.ABORTED
    assert result.error["error"] == "IncompatibleClustersError"
    assert network.posts() == []


def test_version_check_can_be_skipped(make_config, client, source, destination):
    populate(source)
    destination.version = "0.11.0"

    result = run(make_config(check_versions=False), client)

    assert result.succeeded
    assert result.version is None


def test_full_default_plan(make_config, client, source, destination, network):
    populate(source)

    result = run(make_config(), client)

    assert result.succeeded
    assert result.version == "0.10.1"
    assert result.plugins == ["acl", "key-auth", "rate-limiting"]
    assert network.posts() == [
        "/apis/", "/apis/", "/apis/",
        "/consumers/", "/consumers/",
        "/plugins/",
        "/consumers/c1/acls/", "/consumers/c1/acls/",
        "/consumers/c2/acls/",
        "/consumers/c1/key-auth/",
        "/oauth2_tokens/",
    ]
    assert destination.collections == source.collections
    assert result.total_records_created == 11
    assert len(result.steps) == 10


def test_second_run_creates_nothing(make_config, client, source, destination, network):
    populate(source)

    first = run(make_config(), client)
    created = first.total_records_created
    network.log.clear()
    second = run(make_config(), client)

    assert second.succeeded
    assert second.total_records_created == 0
    assert second.total_records_skipped == created
    assert second.total_records_read == first.total_records_read
    assert destination.collections == source.collections


def test_rerun_after_partial_transfer(make_config, client, source, destination):
    populate(source)
    destination.add("/apis/", {"id": "a1", "name": "one"}, {"id": "a2", "name": "two"})
    destination.add("/consumers/", {"id": "c1", "username": "alice"})

    result = run(make_config(), client)

    assert result.succeeded
    assert result.total_records_skipped == 3
    assert destination.collections == source.collections


def test_relations_are_depth_first_per_parent(make_config, client, source, network):
    source.page_size = 1
    source.add("/consumers/", {"id": "c1"}, {"id": "c2"})
    source.add("/consumers/c1/jwt/", {"id": "j1"}, {"id": "j2"})
    source.add("/consumers/c2/jwt/", {"id": "j3"})

    run(make_config([{"collection": "/consumers/", "relation": "jwt"}]), client)

    traffic = [(name, method, path) for name, method, path in network.log if path != "/"]
    assert traffic == [
        ("source", "GET", "/consumers/"),
        ("source", "GET", "/consumers/c1/jwt/"),
        ("destination", "POST", "/consumers/c1/jwt/"),
        ("source", "GET", "/consumers/c1/jwt/?offset=1"),
        ("destination", "POST", "/consumers/c1/jwt/"),
        ("source", "GET", "/consumers/?offset=1"),
        ("source", "GET", "/consumers/c2/jwt/"),
        ("destination", "POST", "/consumers/c2/jwt/"),
    ]


def test_relation_step_does_not_recreate_parents(make_config, client, source, network):
    source.add("/consumers/", {"id": "c1"})

    result = run(make_config([{"collection": "/consumers/", "relation": "acls"}]), client)

    assert result.succeeded
    assert network.posts() == []
    assert result.steps[0].parents_read == 1


@pytest.mark.parametrize("failing_id", ["a2", "c1", "acl2", "t1"])
def test_fatal_transfer_halts_everything(make_config, client, source, destination, network, failing_id):
    populate(source)
    destination.reject_ids[failing_id] = 500

    result = run(make_config(), client)

    assert result.status == MigrationStatus.ABORTED
    assert result.error["error"] == "TransferFailedError"
    assert result.error["context"]["record_id"] == failing_id
    assert result.error["context"]["status"] == 500
    # The rejected POST is the very last request of the run.
    last = network.log[-1]
    assert last[0] == "destination" and last[1] == "POST"
    assert result.steps[-1].status == MigrationStatus.ABORTED


def test_source_failure_aborts(make_config, client, source, destination, network):
    populate(source)
    source.overrides[("GET", "/plugins/")] = make_response(500, {"message": "An unexpected error occurred"})

    result = run(make_config(), client)

    assert result.status == MigrationStatus.ABORTED
    assert result.error["step"] == "/plugins/"
    assert network.log[-1] == ("source", "GET", "/plugins/")
    assert "/oauth2_tokens/" not in [path for _, _, path in network.log]


def test_destination_down_aborts(make_config, client, source, destination, network):
    populate(source)
    destination.down = True

    result = run(make_config(), client)

    assert result.status == MigrationStatus.ABORTED
    assert result.error["error"] == "TransportError"
    assert network.posts() == []


def test_parent_without_id_aborts(make_config, client, source):
    source.add("/consumers/", {"username": "anonymous"})

    result = run(make_config([{"collection": "/consumers/", "relation": "acls"}]), client)

    assert result.status == MigrationStatus.ABORTED
    assert result.error["error"] == "MalformedResponseError"


def test_empty_source(make_config, client, network):
    result = run(make_config(), client)

    assert result.succeeded
    assert result.total_records_read == 0
    assert network.posts() == []


def test_consumer_without_credentials_encoded_as_empty_object(make_config, client, source, destination, network):
    source.add("/consumers/", {"id": "c1"}, {"id": "c2"})
    source.add("/consumers/c2/acls/", {"id": "acl1", "group": "dev"})
    source.overrides[("GET", "/consumers/c1/acls/")] = make_response(200, {"data": {}, "total": 0})

    result = run(make_config([
        {"collection": "/consumers/"},
        {"collection": "/consumers/", "relation": "acls"},
    ]), client)

    assert result.succeeded
    assert network.posts() == ["/consumers/", "/consumers/", "/consumers/c2/acls/"]


def test_nodes_without_plugin_information_abort(make_config, client, source, destination, network):
    populate(source)
    for cluster in (source, destination):
        cluster.overrides[("GET", "/")] = make_response(200, {"version": "0.10.1"})

    result = run(make_config(), client)

    assert result.status == MigrationStatus.ABORTED
    assert result.error["error"] == "MalformedResponseError"
    assert network.posts() == []
