"""
pslib.user_export — Per-pool user listing for operator inspection.

Writes ``<data_dir>/<region>/users/<pool id>.json`` for every user pool and a
flat Excel workbook (one row per user) in the region directory. User records
are scrubbed by an Anonymizer when one is given; a single instance is shared
across all pools so an address appearing in several pools maps identically.
"""

import datetime
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from pslib.anonymize import Anonymizer
from pslib.inventory import PoolInventory
from pslib.snapshots import region_dir, write_json
from pslib.users import list_pool_users, user_attribute

logger = logging.getLogger(__name__)

USER_COLUMNS = [
    "Pool ID",
    "Pool Name",
    "Username",
    "Status",
    "Enabled",
    "Email",
    "Given Name",
    "Family Name",
    "Created",
    "Last Modified",
]

SHEET_NAME = "Users"


@dataclass
class UserExportResult:
    directory: Path
    workbook: Optional[Path] = None
    rows: List[Dict[str, Any]] = field(default_factory=list)
    pool_files: List[Path] = field(default_factory=list)
    failed_pools: List[str] = field(default_factory=list)


def _format_date(value: Any) -> str:
    if isinstance(value, datetime.datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return "" if value is None else str(value)


def user_row(pool: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "Pool ID": pool.get("Id"),
        "Pool Name": pool.get("Name"),
        "Username": user.get("Username"),
        "Status": user.get("UserStatus"),
        "Enabled": user.get("Enabled"),
        "Email": user_attribute(user, "email", ""),
        "Given Name": user_attribute(user, "given_name", ""),
        "Family Name": user_attribute(user, "family_name", ""),
        "Created": _format_date(user.get("UserCreateDate")),
        "Last Modified": _format_date(user.get("UserLastModifiedDate")),
    }


def save_rows_to_excel(rows: List[Dict[str, Any]], output_path: Path, sheet_name: str = SHEET_NAME) -> Path:
    """Write rows to a single-sheet workbook with column widths fitted to content."""
    df = pd.DataFrame(rows, columns=USER_COLUMNS)

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)

        if not df.empty:
            worksheet = writer.sheets[sheet_name]
            for i, column in enumerate(df.columns):
                column_width = max(df[column].astype(str).map(len).max(), len(column)) + 2
                worksheet.column_dimensions[get_column_letter(i + 1)].width = min(column_width, 50)

    return output_path


def export_pool_users(
    idp_client,
    inventory: PoolInventory,
    data_dir: Path,
    region: str,
    anonymizer: Optional[Anonymizer] = None,
    custom_attributes: Sequence[str] = (),
    excel: bool = True,
) -> UserExportResult:
    """
    Export every user of every user pool in the region.

    Args:
        idp_client: boto3 ``cognito-idp`` client
        inventory: Pool inventory for the region
        data_dir: Root output directory
        region: Region name (subdirectory)
        anonymizer: Scrubs personal fields when given
        custom_attributes: Custom attributes requested when listing users
        excel: Also write the flat workbook

    Returns:
        UserExportResult
    """
    directory = region_dir(data_dir, region)
    users_dir = directory / "users"
    users_dir.mkdir(exist_ok=True)
    result = UserExportResult(directory=directory)

    for pool in inventory.user_pools():
        pool_id = pool.get("Id")
        try:
            users = list_pool_users(idp_client, pool_id, custom_attributes)
        except Exception as e:
            logger.error("Error getting users from pool %s %s: %s", pool_id, pool.get("Name"), e)
            result.failed_pools.append(pool_id)
            continue

        if anonymizer is not None:
            users = anonymizer.scrub_users(users)

        result.pool_files.append(write_json(users_dir / f"{pool_id}.json", users))
        result.rows.extend(user_row(pool, user) for user in users)
        logger.info("Exported %d users from pool %s", len(users), pool_id)

    if excel:
        timestamp = datetime.datetime.now().strftime("%m.%d.%Y")
        workbook = directory / f"{region}-cognito-users-export-{timestamp}.xlsx"
        result.workbook = save_rows_to_excel(result.rows, workbook)
        logger.info("Wrote %d user row(s) to %s", len(result.rows), workbook)

    return result
