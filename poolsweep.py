#!/usr/bin/env python3
# poolsweep.py - Command line entry point for the Cognito pool sweeper

"""
===========================
= COGNITO POOL SWEEPER =
===========================

Title: PoolSweep - Unused Cognito Pool Retirement
Version: v0.1.0
Date: OCT-18-2026

Description:
Audits the Cognito user pools and identity pools of one region, marks the
unused or orphaned ones for deletion, writes keep/delete JSON snapshots to
data/<region>/ and then deletes the marked pools one at a time.

Commands:
- export   classify pools, write snapshots, delete marked pools
- users    export (anonymized) user listings of every user pool

Credentials: AWS_ACCESS_ID / AWS_SECRET_KEY (optionally AWS_SESSION_TOKEN),
or anything boto3 finds (AWS_ACCESS_KEY_ID, ~/.aws/credentials, ...).
"""

import argparse
import datetime
import os
import sys
from pathlib import Path
from typing import List, Optional

# Add the current directory to the path to ensure we can import utils
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import utils
from pslib import config
from pslib.anonymize import Anonymizer
from pslib.inventory import PoolInventory
from pslib.sweep import run_sweep
from pslib.user_export import export_pool_users

SCRIPT_NAME = "poolsweep.py"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="poolsweep",
        description="Find and retire unused Cognito user pools and identity pools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "AWS_ACCESS_ID, AWS_SECRET_KEY (and AWS_SESSION_TOKEN)\n"
            "can be specified in env variables, or use ~/.aws/credentials"
        ),
    )
    subparsers = parser.add_subparsers(dest="command")

    export = subparsers.add_parser(
        "export", help="Classify pools, write keep/delete snapshots, delete marked pools"
    )
    users = subparsers.add_parser(
        "users", help="Export user listings of every user pool for inspection"
    )

    for sub in (export, users):
        sub.add_argument("--region", type=str, default=None,
                         help="AWS region (default: POOLSWEEP_REGION or config.json)")
        sub.add_argument("--data-dir", type=Path, default=None,
                         help="Output directory (default: data/)")
        sub.add_argument("--no-log-file", action="store_true",
                         help="Log to the console only")

    export.add_argument("--dry-run", action="store_true",
                        help="Stop after writing snapshots; delete nothing")

    users.add_argument("--no-anonymize", action="store_true",
                       help="Export real names and email addresses")
    users.add_argument("--no-excel", action="store_true",
                       help="Write JSON only, skip the Excel workbook")

    return parser


def _region(args) -> str:
    region = args.region or config.get_region()
    if not utils.validate_aws_region(region):
        raise ValueError(f"Invalid AWS region: {region}")
    return region


def _anonymizer() -> Anonymizer:
    return Anonymizer(config.get_safe_email_domains())


def cmd_export(args) -> int:
    region = _region(args)
    data_dir = args.data_dir or config.get_data_dir()

    utils.log_section(f"SWEEPING COGNITO POOLS IN {region}")
    idp_client = utils.get_user_pool_client(region)
    identity_client = utils.get_identity_pool_client(region)
    inventory = PoolInventory(idp_client, identity_client, config.get_max_results())

    result = run_sweep(
        idp_client,
        identity_client,
        region,
        data_dir,
        dry_run=args.dry_run,
        custom_attributes=config.get_custom_attributes(),
        anonymizer=_anonymizer() if config.anonymize_snapshots() else None,
        inventory=inventory,
    )

    snapshots = result.snapshots
    utils.log_export_summary("User pools marked for deletion", len(snapshots.delete_pools),
                             str(snapshots.path("delete-pools.json")))
    utils.log_export_summary("Identity pools marked for deletion",
                             len(snapshots.delete_identity_pools),
                             str(snapshots.path("delete-identity-pools.json")))

    if result.dry_run:
        return 0

    failures = 0
    for report in (result.user_pool_report, result.identity_pool_report):
        utils.log_info(f"Deleted {len(report.deleted)} {report.resource_type}(s)")
        for resource_id, message in report.failed:
            utils.log_warning(f"Could not delete {report.resource_type} {resource_id}: {message}")
        failures += len(report.failed)

    if failures:
        utils.log_warning(f"{failures} deletion(s) failed; re-run export to retry")
    else:
        utils.log_success("Sweep complete")
    return 0


def cmd_users(args) -> int:
    region = _region(args)
    data_dir = args.data_dir or config.get_data_dir()

    utils.log_section(f"EXPORTING COGNITO USERS IN {region}")
    idp_client = utils.get_user_pool_client(region)
    identity_client = utils.get_identity_pool_client(region)
    inventory = PoolInventory(idp_client, identity_client, config.get_max_results())

    result = export_pool_users(
        idp_client,
        inventory,
        data_dir,
        region,
        anonymizer=None if args.no_anonymize else _anonymizer(),
        custom_attributes=config.get_custom_attributes(),
        excel=not args.no_excel,
    )

    utils.log_export_summary("Cognito users", len(result.rows),
                             str(result.workbook or result.directory / "users"))
    for pool_id in result.failed_pools:
        utils.log_warning(f"Users of pool {pool_id} were not exported")
    return 0


COMMANDS = {
    "export": cmd_export,
    "users": cmd_users,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run the selected command.

    Returns the process exit code: 0 on success or when help is shown,
    1 on an unhandled error, 130 when interrupted.
    """
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else list(argv)

    # Unknown commands get the usage text, not an argparse error
    if not argv or argv[0] not in COMMANDS:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    command = COMMANDS[args.command]

    start_time = datetime.datetime.now()
    utils.setup_logging(f"poolsweep-{args.command}", log_to_file=not args.no_log_file)
    utils.log_script_start(SCRIPT_NAME, parser.description)

    try:
        with utils.handle_aws_operation(f"poolsweep {args.command}"):
            return command(args)
    except KeyboardInterrupt:
        utils.log_info("User cancelled operation with Ctrl+C")
        return 130
    except Exception:
        # Already logged by handle_aws_operation
        return 1
    finally:
        utils.log_script_end(SCRIPT_NAME, start_time)


if __name__ == "__main__":
    sys.exit(main())
