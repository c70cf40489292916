"""
pslib.retirement — Delete the pools the classifier marked for deletion.

Deletions run one at a time. A user pool's hosted domain is deleted before
the pool itself. A failed deletion is logged and recorded, and the loop moves
on to the next pool. Nothing is rolled back; the delete snapshots written
beforehand are the only record of what was removed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pslib.aws_client import aws_error_message, is_not_found
from pslib.classifier import is_marked_for_deletion

logger = logging.getLogger(__name__)


@dataclass
class RetirementReport:
    """Outcome of one retirement pass."""

    resource_type: str
    deleted: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def user_pool_domain(client, pool_id: str) -> Optional[str]:
    """
    Hosted UI domain attached to a user pool, if any.

    A pool that no longer exists has no domain.
    """
    try:
        response = client.describe_user_pool(UserPoolId=pool_id)
    except Exception as e:
        if is_not_found(e):
            logger.warning("User pool %s not found while resolving its domain", pool_id)
            return None
        raise

    pool = response.get("UserPool", {}) or {}
    return pool.get("Domain") or pool.get("CustomDomain")


def retire_user_pool(client, pool_id: str) -> None:
    domain = user_pool_domain(client, pool_id)
    if domain:
        logger.info("Deleting domain %s of user pool %s", domain, pool_id)
        client.delete_user_pool_domain(UserPoolId=pool_id, Domain=domain)

    client.delete_user_pool(UserPoolId=pool_id)


def retire_user_pools(client, pools: Iterable[Dict[str, Any]]) -> RetirementReport:
    """
    Delete every user pool in ``pools`` that is marked for deletion.

    Args:
        client: boto3 ``cognito-idp`` client
        pools: User pool records (unmarked records are ignored)

    Returns:
        RetirementReport
    """
    report = RetirementReport("user pool")

    for pool in pools:
        if not is_marked_for_deletion(pool):
            continue
        pool_id = pool.get("Id")
        logger.info("Preparing to delete user pool %s", pool_id)
        try:
            retire_user_pool(client, pool_id)
        except Exception as e:
            message = aws_error_message(e)
            logger.error("Failed to delete user pool %s: %s", pool_id, message)
            report.failed.append((pool_id, message))
            continue

        report.deleted.append(pool_id)
        logger.info("Deleted user pool %s", pool_id)

    return report


def retire_identity_pools(client, identity_pools: Iterable[Dict[str, Any]]) -> RetirementReport:
    """
    Delete every identity pool in ``identity_pools`` that is marked for deletion.

    Args:
        client: boto3 ``cognito-identity`` client
        identity_pools: Identity pool records (unmarked records are ignored)

    Returns:
        RetirementReport
    """
    report = RetirementReport("identity pool")

    for identity_pool in identity_pools:
        if not is_marked_for_deletion(identity_pool):
            continue
        identity_pool_id = identity_pool.get("IdentityPoolId")
        logger.info("Preparing to delete identity pool %s", identity_pool_id)
        try:
            client.delete_identity_pool(IdentityPoolId=identity_pool_id)
        except Exception as e:
            message = aws_error_message(e)
            logger.error("Failed to delete identity pool %s: %s", identity_pool_id, message)
            report.failed.append((identity_pool_id, message))
            continue

        report.deleted.append(identity_pool_id)
        logger.info("Deleted identity pool %s", identity_pool_id)

    return report
