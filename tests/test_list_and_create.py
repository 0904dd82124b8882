"""Endpoint tests for v2 listing and repository creation."""

import pytest

from conftest import DATA_NAME, DATA_NAME_2, DATA_NAME_3
from util.constants import LIST_MEDIA_TYPE_V2

NON_CONFIG_TYPES = ["data", "index", "keys", "locks", "snapshots"]


def _assert_layout(root):
    for t in NON_CONFIG_TYPES:
        assert (root / t).is_dir()
    shards = sorted(p.name for p in (root / "data").iterdir())
    assert len(shards) == 256
    assert shards[0] == "00" and shards[-1] == "ff"
    assert not (root / "config").exists()


class TestCreateRepository:
    def test_create(self, client, store_root):
        res = client.post("/backups/?create=true")
        assert res.status_code == 200
        _assert_layout(store_root / "backups")

    def test_create_root_repository(self, client, store_root):
        assert client.post("/?create=true").status_code == 200
        _assert_layout(store_root)

    def test_create_twice_is_safe(self, client, store_root):
        assert client.post("/backups/?create=true").status_code == 200
        assert client.post("/backups/?create=true").status_code == 200
        _assert_layout(store_root / "backups")

    @pytest.mark.parametrize("query", ["", "?create=", "?create=yes", "?create=TRUE", "?create=1"])
    def test_create_requires_explicit_flag(self, client, store_root, query):
        res = client.post(f"/backups/{query}")
        assert res.status_code == 400
        assert not (store_root / "backups").exists()

    def test_create_fails_when_directory_is_blocked(self, client, store_root):
        (store_root / "backups").mkdir(parents=True)
        # A regular file where the keys directory belongs makes mkdir fail.
        (store_root / "backups" / "keys").write_bytes(b"")
        res = client.post("/backups/?create=true")
        assert res.status_code == 500
        # Directories made before the failure stay in place.
        assert (store_root / "backups" / "data").is_dir()
        assert (store_root / "backups" / "index").is_dir()
        assert not (store_root / "backups" / "locks").exists()


class TestListBlobs:
    def test_list_unsharded_type(self, client):
        client.post("/repo/?create=true")
        client.post("/repo/keys/k2", content=b"22")
        client.post("/repo/keys/k1", content=b"1")

        res = client.get("/repo/keys/")
        assert res.status_code == 200
        assert res.headers["content-type"] == LIST_MEDIA_TYPE_V2
        assert res.json() == [{"name": "k1", "size": 1}, {"name": "k2", "size": 2}]

    def test_list_flattens_data_shards(self, client):
        client.post("/repo/?create=true")
        client.post(f"/repo/data/{DATA_NAME}", content=b"a")
        client.post(f"/repo/data/{DATA_NAME_2}", content=b"aa")
        client.post(f"/repo/data/{DATA_NAME_3}", content=b"bbb")

        res = client.get("/repo/data/")
        assert res.status_code == 200
        assert res.json() == [
            {"name": DATA_NAME, "size": 1},
            {"name": DATA_NAME_2, "size": 2},
            {"name": DATA_NAME_3, "size": 3},
        ]

    def test_list_never_includes_shard_directories(self, client):
        client.post("/repo/?create=true")
        names = [item["name"] for item in client.get("/repo/data/").json()]
        assert names == []

    def test_empty_listing_is_json_array(self, client):
        client.post("/repo/?create=true")
        res = client.get("/repo/snapshots/")
        assert res.status_code == 200
        assert res.content == b"[]"

    def test_list_root_namespace(self, client):
        client.post("/?create=true")
        client.post("/index/i1", content=b"1234")
        assert client.get("/index/").json() == [{"name": "i1", "size": 4}]

    def test_list_missing_type_directory(self, client):
        assert client.get("/nothing-here/keys/").status_code == 404

    def test_list_invalid_type(self, client):
        assert client.get("/repo/bogus/").status_code == 500
