"""
Unit tests for pslib.inventory — run-scoped pool listing cache.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from pslib.inventory import CachedCollection, PoolInventory


class TestCachedCollection:
    def test_fetches_once(self):
        fetch = MagicMock(return_value=[{"Id": "a"}])
        cache = CachedCollection(fetch)

        assert cache.get_or_fetch() == [{"Id": "a"}]
        assert cache.get_or_fetch() == [{"Id": "a"}]
        assert fetch.call_count == 1

    def test_empty_result_is_not_refetched(self):
        fetch = MagicMock(return_value=[])
        cache = CachedCollection(fetch)

        cache.get_or_fetch()
        cache.get_or_fetch()

        assert fetch.call_count == 1
        assert cache.loaded is True

    def test_invalidate_forces_refetch(self):
        fetch = MagicMock(side_effect=[[1], [2]])
        cache = CachedCollection(fetch)

        assert cache.get_or_fetch() == [1]
        cache.invalidate()
        assert cache.get_or_fetch() == [2]

    def test_returns_same_list_object(self):
        cache = CachedCollection(lambda: [{"Id": "a"}])

        assert cache.get_or_fetch() is cache.get_or_fetch()


class TestPoolInventory:
    def _clients(self):
        idp = MagicMock()
        idp.list_user_pools.side_effect = [
            {"UserPools": [{"Id": "p1"}, {"Id": "p2"}], "NextToken": "t1"},
            {"UserPools": [{"Id": "p3"}]},
        ]
        identity = MagicMock()
        identity.list_identity_pools.return_value = {
            "IdentityPools": [{"IdentityPoolId": "eu-central-1:abc"}]
        }
        return idp, identity

    def test_user_pools_drains_all_pages(self):
        idp, identity = self._clients()
        inventory = PoolInventory(idp, identity, max_results=2)

        pools = inventory.user_pools()

        assert [p["Id"] for p in pools] == ["p1", "p2", "p3"]
        first, second = idp.list_user_pools.call_args_list
        assert first.kwargs == {"MaxResults": 2}
        assert second.kwargs == {"MaxResults": 2, "NextToken": "t1"}

    def test_default_page_size_is_60(self):
        idp, identity = self._clients()

        PoolInventory(idp, identity).identity_pools()

        identity.list_identity_pools.assert_called_once_with(MaxResults=60)

    def test_listings_are_cached_per_run(self):
        idp, identity = self._clients()
        inventory = PoolInventory(idp, identity)

        inventory.user_pools()
        inventory.user_pools()
        inventory.identity_pools()
        inventory.identity_pools()

        assert idp.list_user_pools.call_count == 2
        assert identity.list_identity_pools.call_count == 1
