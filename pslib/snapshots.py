"""
pslib.snapshots — Keep/delete JSON snapshots of a classification run.

Four documents are written per region, each a pretty-printed array of pool
records:

    keep-pools.json             keep-identity-pools.json
    delete-pools.json           delete-identity-pools.json

They are written before any deletion so an operator can review (or veto)
what a later retirement pass will remove.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from pslib.anonymize import Anonymizer
from pslib.classifier import USERS_FIELD, partition

logger = logging.getLogger(__name__)

KEEP_POOLS = "keep-pools.json"
DELETE_POOLS = "delete-pools.json"
KEEP_IDENTITY_POOLS = "keep-identity-pools.json"
DELETE_IDENTITY_POOLS = "delete-identity-pools.json"


@dataclass
class SnapshotSet:
    directory: Path
    keep_pools: List[Dict[str, Any]]
    delete_pools: List[Dict[str, Any]]
    keep_identity_pools: List[Dict[str, Any]]
    delete_identity_pools: List[Dict[str, Any]]

    def path(self, name: str) -> Path:
        return self.directory / name


def region_dir(data_dir: Path, region: str) -> Path:
    """``<data_dir>/<region>``, created if missing."""
    directory = Path(data_dir) / region
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def write_json(path: Path, data: Any) -> Path:
    """
    Write ``data`` as indented JSON, atomically.

    Values JSON cannot represent (boto3 datetimes) are written as strings.
    """
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
        f.write("\n")
    os.replace(tmp_path, path)
    return path


def _scrubbed(records: List[Dict[str, Any]], anonymizer: Optional[Anonymizer]) -> List[Dict[str, Any]]:
    if anonymizer is None:
        return records
    result = []
    for record in records:
        if record.get(USERS_FIELD):
            record = dict(record)
            record[USERS_FIELD] = anonymizer.scrub_users(record[USERS_FIELD])
        result.append(record)
    return result


def write_snapshots(
    data_dir: Path,
    region: str,
    user_pools: List[Dict[str, Any]],
    identity_pools: List[Dict[str, Any]],
    anonymizer: Optional[Anonymizer] = None,
) -> SnapshotSet:
    """
    Partition classified pools and write the four snapshot files.

    Args:
        data_dir: Root output directory
        region: Region name (subdirectory)
        user_pools: Classified user pool records
        identity_pools: Classified identity pool records
        anonymizer: When given, ``poolUsers`` are scrubbed in the written files

    Returns:
        SnapshotSet with the partitioned (unscrubbed) records
    """
    directory = region_dir(data_dir, region)
    keep_pools, delete_pools = partition(user_pools)
    keep_identity_pools, delete_identity_pools = partition(identity_pools)

    documents = {
        DELETE_POOLS: delete_pools,
        KEEP_POOLS: keep_pools,
        DELETE_IDENTITY_POOLS: delete_identity_pools,
        KEEP_IDENTITY_POOLS: keep_identity_pools,
    }
    for name, records in documents.items():
        write_json(directory / name, _scrubbed(records, anonymizer))
        logger.info("Wrote %d record(s) to %s", len(records), directory / name)

    return SnapshotSet(
        directory=directory,
        keep_pools=keep_pools,
        delete_pools=delete_pools,
        keep_identity_pools=keep_identity_pools,
        delete_identity_pools=delete_identity_pools,
    )
