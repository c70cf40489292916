"""
Unit tests for pslib.snapshots — keep/delete JSON documents.
"""

import datetime
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from pslib.anonymize import Anonymizer
from pslib.snapshots import (
    DELETE_IDENTITY_POOLS,
    DELETE_POOLS,
    KEEP_IDENTITY_POOLS,
    KEEP_POOLS,
    write_json,
    write_snapshots,
)


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


def _pools():
    user_pools = [
        {"Id": "p1", "Name": "empty", "isPrepareToDelete": True, "reasonDelete": "empty users",
         "poolUsers": []},
        {"Id": "p2", "Name": "live", "CreationDate": datetime.datetime(2024, 1, 2, 3, 4, 5)},
    ]
    identity_pools = [
        {"IdentityPoolId": "ip1", "isPrepareToDelete": True, "reasonDelete": "providers empty"},
        {"IdentityPoolId": "ip2"},
    ]
    return user_pools, identity_pools


class TestWriteSnapshots:
    def test_writes_four_documents_under_region(self, tmp_path):
        user_pools, identity_pools = _pools()

        snapshots = write_snapshots(tmp_path, "eu-central-1", user_pools, identity_pools)

        directory = tmp_path / "eu-central-1"
        assert snapshots.directory == directory
        for name in (KEEP_POOLS, DELETE_POOLS, KEEP_IDENTITY_POOLS, DELETE_IDENTITY_POOLS):
            assert (directory / name).exists()

    def test_partitioned_contents(self, tmp_path):
        user_pools, identity_pools = _pools()

        snapshots = write_snapshots(tmp_path, "eu-central-1", user_pools, identity_pools)

        assert [p["Id"] for p in _read(snapshots.path(DELETE_POOLS))] == ["p1"]
        assert [p["Id"] for p in _read(snapshots.path(KEEP_POOLS))] == ["p2"]
        assert [p["IdentityPoolId"] for p in _read(snapshots.path(DELETE_IDENTITY_POOLS))] == ["ip1"]
        assert [p["IdentityPoolId"] for p in _read(snapshots.path(KEEP_IDENTITY_POOLS))] == ["ip2"]
        assert snapshots.delete_pools == [user_pools[0]]

    def test_datetimes_written_as_strings(self, tmp_path):
        user_pools, identity_pools = _pools()

        snapshots = write_snapshots(tmp_path, "eu-central-1", user_pools, identity_pools)

        assert _read(snapshots.path(KEEP_POOLS))[0]["CreationDate"] == "2024-01-02 03:04:05"

    def test_pretty_printed(self, tmp_path):
        user_pools, identity_pools = _pools()

        snapshots = write_snapshots(tmp_path, "eu-central-1", user_pools, identity_pools)

        assert '\n  {\n    "Id": "p1"' in snapshots.path(DELETE_POOLS).read_text(encoding="utf-8")

    def test_pool_users_anonymized_in_file_only(self, tmp_path):
        user = {
            "Username": "alice@example.com",
            "UserStatus": "FORCE_CHANGE_PASSWORD",
            "Attributes": [{"Name": "email", "Value": "alice@example.com"}],
        }
        user_pools = [{"Id": "p1", "isPrepareToDelete": True, "poolUsers": [user]}]
        anonymizer = Anonymizer(name_source=lambda: ["brave", "otter"])

        snapshots = write_snapshots(tmp_path, "eu-central-1", user_pools, [], anonymizer)

        written = _read(snapshots.path(DELETE_POOLS))[0]["poolUsers"][0]
        assert written["Username"] == "brave.otter@example.com"
        assert user_pools[0]["poolUsers"][0]["Username"] == "alice@example.com"

    def test_empty_inventory_writes_empty_arrays(self, tmp_path):
        snapshots = write_snapshots(tmp_path, "eu-central-1", [], [])

        assert _read(snapshots.path(KEEP_POOLS)) == []
        assert _read(snapshots.path(DELETE_IDENTITY_POOLS)) == []


class TestWriteJson:
    def test_no_temp_file_left_behind(self, tmp_path):
        target = tmp_path / "out.json"

        write_json(target, {"a": 1})

        assert _read(target) == {"a": 1}
        assert list(tmp_path.iterdir()) == [target]
