"""
pslib.classifier — Keep/delete decisions for user pools and identity pools.

Verdicts are written onto the pool records themselves (``isPrepareToDelete``,
``reasonDelete``) so the records can be serialized as-is into the keep/delete
snapshots. The first matching rule wins and classification never raises: a
pool whose users or providers cannot be read is logged and kept.

Identity pools are classified against the user pools that survived user pool
classification, so user pools must be classified first.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

from pslib.aws_client import aws_error_message, is_not_found

logger = logging.getLogger(__name__)

FORCE_CHANGE_PASSWORD = "FORCE_CHANGE_PASSWORD"
COGNITO_PROVIDER_PREFIX = "cognito-idp"

REASON_EMPTY_USERS = "empty users"
REASON_ALL_FORCE_CHANGE_PASSWORD = "all users force change password"
REASON_PROVIDERS_EMPTY = "providers empty"

DELETE_FLAG = "isPrepareToDelete"
REASON_FIELD = "reasonDelete"
USERS_FIELD = "poolUsers"


class Verdict(NamedTuple):
    is_prepare_to_delete: bool
    reason: str


def unmatched_provider_reason(provider_name: str) -> str:
    return f"provider {provider_name} does not match any retained user pool"


def apply_verdict(record: Dict[str, Any], verdict: Verdict) -> Dict[str, Any]:
    record[DELETE_FLAG] = verdict.is_prepare_to_delete
    record[REASON_FIELD] = verdict.reason
    return record


def is_marked_for_deletion(record: Dict[str, Any]) -> bool:
    return bool(record.get(DELETE_FLAG))


def partition(records: Iterable[Dict[str, Any]]):
    """Split records into (keep, delete) lists, preserving order."""
    keep: List[Dict[str, Any]] = []
    delete: List[Dict[str, Any]] = []
    for record in records:
        (delete if is_marked_for_deletion(record) else keep).append(record)
    return keep, delete


# ---------------------------------------------------------------------------
# User pools
# ---------------------------------------------------------------------------


def user_pool_verdict(users: List[Dict[str, Any]]) -> Optional[Verdict]:
    """Verdict for a pool with the given users, or None to keep it."""
    if not users:
        return Verdict(True, REASON_EMPTY_USERS)
    if all(u.get("UserStatus") == FORCE_CHANGE_PASSWORD for u in users):
        return Verdict(True, REASON_ALL_FORCE_CHANGE_PASSWORD)
    return None


def classify_user_pools(
    pools: List[Dict[str, Any]],
    list_users: Callable[[str], List[Dict[str, Any]]],
) -> List[Dict[str, Any]]:
    """
    Tag each user pool in place.

    Args:
        pools: User pool records from the inventory
        list_users: Returns every user of the given pool ID

    Returns:
        list: The same ``pools`` list
    """
    for pool in pools:
        pool_id = pool.get("Id")
        pool_name = pool.get("Name")

        try:
            users = list_users(pool_id)
        except Exception as e:
            logger.error("Error getting users from pool %s %s: %s", pool_id, pool_name, e)
            logger.debug("Enumeration failure for %s", pool_id, exc_info=True)
            continue

        logger.info("Found %d users in pool %s %s", len(users), pool_id, pool_name)

        verdict = user_pool_verdict(users)
        if verdict:
            apply_verdict(pool, verdict)
            pool[USERS_FIELD] = users
            logger.info("Pool %s marked for deletion: %s", pool_id, verdict.reason)

    return pools


# ---------------------------------------------------------------------------
# Identity pools
# ---------------------------------------------------------------------------


def find_user_pools_for_provider(
    provider_name: Optional[str],
    retained_pools: Iterable[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Retained user pools a cognito-idp provider name points at."""
    if not provider_name or not provider_name.startswith(COGNITO_PROVIDER_PREFIX):
        return []
    return [p for p in retained_pools if provider_name.endswith("/" + str(p.get("Id")))]


def identity_pool_verdict(
    providers: List[Dict[str, Any]],
    retained_pools: List[Dict[str, Any]],
    identity_pool_id: str = "",
) -> Optional[Verdict]:
    """Verdict for an identity pool with the given providers, or None to keep it."""
    if not providers:
        return Verdict(True, REASON_PROVIDERS_EMPTY)

    if len(providers) > 1:
        logger.info(
            "Identity pool %s has %d providers; left for manual review",
            identity_pool_id,
            len(providers),
        )
        return None

    provider_name = providers[0].get("ProviderName") or ""
    if not provider_name.startswith(COGNITO_PROVIDER_PREFIX):
        return None

    if find_user_pools_for_provider(provider_name, retained_pools):
        return None
    return Verdict(True, unmatched_provider_reason(provider_name))


def classify_identity_pools(
    identity_pools: List[Dict[str, Any]],
    describe_identity_pool: Callable[[str], Dict[str, Any]],
    retained_user_pools: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Tag each identity pool in place.

    Args:
        identity_pools: Identity pool records from the inventory
        describe_identity_pool: Returns the describe response for an identity pool ID
        retained_user_pools: User pools not marked for deletion

    Returns:
        list: The same ``identity_pools`` list
    """
    for identity_pool in identity_pools:
        identity_pool_id = identity_pool.get("IdentityPoolId")

        try:
            description = describe_identity_pool(identity_pool_id) or {}
        except Exception as e:
            if is_not_found(e):
                logger.warning("Identity pool %s not found; skipping", identity_pool_id)
            else:
                logger.error(
                    "Error describing identity pool %s: %s",
                    identity_pool_id,
                    aws_error_message(e),
                )
            continue

        providers = description.get("CognitoIdentityProviders") or []
        identity_pool["CognitoIdentityProviders"] = providers

        verdict = identity_pool_verdict(providers, retained_user_pools, identity_pool_id)
        if verdict:
            apply_verdict(identity_pool, verdict)
            logger.info("Identity pool %s marked for deletion: %s", identity_pool_id, verdict.reason)

    return identity_pools
