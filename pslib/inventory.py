"""
pslib.inventory — Run-scoped cache of the user pool and identity pool listings.

Each listing is drained once per run and reused afterwards; remote changes
made mid-run are not reconciled.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pslib.config import DEFAULT_MAX_RESULTS
from pslib.pagination import items_at, paged_call, token_from, with_token

logger = logging.getLogger(__name__)


class CachedCollection:
    """A list fetched on first access and returned as-is thereafter."""

    def __init__(self, fetch: Callable[[], List[Dict[str, Any]]], label: str = "items"):
        self._fetch = fetch
        self._label = label
        self._items: List[Dict[str, Any]] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def get_or_fetch(self) -> List[Dict[str, Any]]:
        if not self._loaded:
            self._items = list(self._fetch())
            self._loaded = True
            logger.debug("Cached %d %s", len(self._items), self._label)
        return self._items

    def invalidate(self) -> None:
        self._items = []
        self._loaded = False


class PoolInventory:
    """
    User pool and identity pool listings for one region.

    Args:
        idp_client: boto3 ``cognito-idp`` client
        identity_client: boto3 ``cognito-identity`` client
        max_results: Page size requested from both listing calls
    """

    def __init__(self, idp_client, identity_client, max_results: Optional[int] = None):
        self.idp_client = idp_client
        self.identity_client = identity_client
        self.max_results = max_results or DEFAULT_MAX_RESULTS
        self._user_pools = CachedCollection(self._list_user_pools, "user pools")
        self._identity_pools = CachedCollection(self._list_identity_pools, "identity pools")

    def user_pools(self) -> List[Dict[str, Any]]:
        return self._user_pools.get_or_fetch()

    def identity_pools(self) -> List[Dict[str, Any]]:
        return self._identity_pools.get_or_fetch()

    def invalidate(self) -> None:
        self._user_pools.invalidate()
        self._identity_pools.invalidate()

    def _list_user_pools(self) -> List[Dict[str, Any]]:
        return paged_call(
            with_token(self.idp_client.list_user_pools),
            {"MaxResults": self.max_results},
            items_at("UserPools"),
            token_from("NextToken"),
        )

    def _list_identity_pools(self) -> List[Dict[str, Any]]:
        return paged_call(
            with_token(self.identity_client.list_identity_pools),
            {"MaxResults": self.max_results},
            items_at("IdentityPools"),
            token_from("NextToken"),
        )
