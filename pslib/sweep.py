"""
pslib.sweep — One classify → snapshot → retire pass over a region.

Order matters: user pools are classified first, identity pools are then
checked against the user pools that survived, the four snapshots are written,
and only then is anything deleted.
"""

import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Optional, Sequence

from pslib.anonymize import Anonymizer
from pslib.classifier import classify_identity_pools, classify_user_pools, partition
from pslib.inventory import PoolInventory
from pslib.retirement import RetirementReport, retire_identity_pools, retire_user_pools
from pslib.snapshots import SnapshotSet, write_snapshots
from pslib.users import list_pool_users

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    region: str
    snapshots: SnapshotSet
    user_pool_report: Optional[RetirementReport] = None
    identity_pool_report: Optional[RetirementReport] = None

    @property
    def dry_run(self) -> bool:
        return self.user_pool_report is None


def run_sweep(
    idp_client,
    identity_client,
    region: str,
    data_dir: Path,
    dry_run: bool = False,
    custom_attributes: Sequence[str] = (),
    anonymizer: Optional[Anonymizer] = None,
    inventory: Optional[PoolInventory] = None,
) -> SweepResult:
    """
    Classify, snapshot and (unless ``dry_run``) retire pools in one region.

    Args:
        idp_client: boto3 ``cognito-idp`` client
        identity_client: boto3 ``cognito-identity`` client
        region: Region name, used for the snapshot directory
        data_dir: Root output directory
        dry_run: Stop after writing snapshots
        custom_attributes: Custom attributes requested when listing users
        anonymizer: Scrubs ``poolUsers`` in the snapshots when given
        inventory: Pre-built inventory (a new one is created otherwise)

    Returns:
        SweepResult
    """
    inventory = inventory or PoolInventory(idp_client, identity_client)

    user_pools = inventory.user_pools()
    logger.info("Classifying %d user pool(s) in %s", len(user_pools), region)
    classify_user_pools(
        user_pools,
        partial(list_pool_users, idp_client, custom_attributes=custom_attributes),
    )
    retained_pools, _ = partition(user_pools)

    identity_pools = inventory.identity_pools()
    logger.info("Classifying %d identity pool(s) in %s", len(identity_pools), region)
    classify_identity_pools(
        identity_pools,
        lambda identity_pool_id: identity_client.describe_identity_pool(
            IdentityPoolId=identity_pool_id
        ),
        retained_pools,
    )

    snapshots = write_snapshots(data_dir, region, user_pools, identity_pools, anonymizer)
    logger.info(
        "User pools: keep=%d delete=%d; identity pools: keep=%d delete=%d",
        len(snapshots.keep_pools),
        len(snapshots.delete_pools),
        len(snapshots.keep_identity_pools),
        len(snapshots.delete_identity_pools),
    )

    result = SweepResult(region=region, snapshots=snapshots)
    if dry_run:
        logger.info("Dry run: no pools deleted. Review snapshots in %s", snapshots.directory)
        return result

    result.user_pool_report = retire_user_pools(idp_client, snapshots.delete_pools)
    result.identity_pool_report = retire_identity_pools(
        identity_client, snapshots.delete_identity_pools
    )
    return result
