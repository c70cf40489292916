#!/usr/bin/env python3
"""
Tests for the poolsweep.py command line entry point.
"""

import json
import logging
import sys
from pathlib import Path
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

sys.path.insert(0, str(Path(__file__).parent.parent))
import poolsweep
import pslib.config as cfg_mod
import utils

REGION = "eu-central-1"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fake_aws_credentials(monkeypatch):
    """Prevent any accidental real AWS calls."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.delenv("AWS_ACCESS_ID", raising=False)
    monkeypatch.delenv("AWS_SECRET_KEY", raising=False)
    monkeypatch.delenv("POOLSWEEP_REGION", raising=False)
    monkeypatch.delenv("POOLSWEEP_DATA_DIR", raising=False)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Point the config singleton at a throwaway config.json."""
    cfg_mod._CONFIG_LOADED = False
    cfg_mod.CONFIG_DATA = {}
    with patch.object(cfg_mod, "_config_path", return_value=tmp_path / "config.json"):
        yield
    cfg_mod._CONFIG_LOADED = False
    cfg_mod.CONFIG_DATA = {}
    for name in (utils.LOGGER_NAME, utils.LIBRARY_LOGGER_NAME):
        target = logging.getLogger(name)
        for handler in target.handlers:
            handler.close()
        target.handlers = []
        target.setLevel(logging.NOTSET)
    utils.logger = None


# ---------------------------------------------------------------------------
# Help / unknown commands
# ---------------------------------------------------------------------------


class TestHelp:
    def test_no_arguments_prints_help(self, capsys):
        assert poolsweep.main([]) == 0
        assert "usage: poolsweep" in capsys.readouterr().out

    def test_unknown_command_prints_help(self, capsys):
        assert poolsweep.main(["import"]) == 0
        assert "export" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------


class TestExportCommand:
    def test_dry_run_writes_snapshots_and_keeps_pools(self, tmp_path):
        data_dir = tmp_path / "data"
        with mock_aws():
            idp = boto3.client("cognito-idp", region_name=REGION)
            pool_id = idp.create_user_pool(PoolName="empty")["UserPool"]["Id"]

            code = poolsweep.main(
                ["export", "--dry-run", "--no-log-file", "--region", REGION, "--data-dir", str(data_dir)]
            )

            assert code == 0
            assert len(idp.list_user_pools(MaxResults=60)["UserPools"]) == 1

        delete_pools = json.loads((data_dir / REGION / "delete-pools.json").read_text(encoding="utf-8"))
        assert [p["Id"] for p in delete_pools] == [pool_id]

    def test_export_deletes_marked_pools(self, tmp_path):
        with mock_aws():
            idp = boto3.client("cognito-idp", region_name=REGION)
            idp.create_user_pool(PoolName="empty")

            code = poolsweep.main(
                ["export", "--no-log-file", "--region", REGION, "--data-dir", str(tmp_path / "data")]
            )

            assert code == 0
            assert idp.list_user_pools(MaxResults=60)["UserPools"] == []

    def test_invalid_region_exits_1(self, tmp_path):
        code = poolsweep.main(
            ["export", "--no-log-file", "--region", "nowhere", "--data-dir", str(tmp_path)]
        )
        assert code == 1

    def test_aws_error_logged_with_code_and_exits_1(self, tmp_path, caplog):
        error = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "not allowed"}}, "ListUserPools"
        )
        with patch.object(poolsweep, "run_sweep", side_effect=error):
            with patch.object(poolsweep.utils, "get_user_pool_client"), \
                    patch.object(poolsweep.utils, "get_identity_pool_client"):
                code = poolsweep.main(["export", "--no-log-file", "--data-dir", str(tmp_path)])

        assert code == 1
        assert "poolsweep export: AWS error [AccessDeniedException]: not allowed" in caplog.text

    def test_interrupt_exits_130(self, tmp_path):
        with patch.object(poolsweep, "run_sweep", side_effect=KeyboardInterrupt):
            with patch.object(poolsweep.utils, "get_user_pool_client"), \
                    patch.object(poolsweep.utils, "get_identity_pool_client"):
                code = poolsweep.main(["export", "--no-log-file", "--data-dir", str(tmp_path)])
        assert code == 130


# ---------------------------------------------------------------------------
# users
# ---------------------------------------------------------------------------


class TestUsersCommand:
    def test_exports_anonymized_users(self, tmp_path):
        data_dir = tmp_path / "data"
        with mock_aws():
            idp = boto3.client("cognito-idp", region_name=REGION)
            pool_id = idp.create_user_pool(PoolName="live")["UserPool"]["Id"]
            idp.admin_create_user(
                UserPoolId=pool_id,
                Username="member",
                UserAttributes=[{"Name": "email", "Value": "member@example.com"}],
            )

            code = poolsweep.main(
                ["users", "--no-log-file", "--no-excel", "--region", REGION, "--data-dir", str(data_dir)]
            )

        assert code == 0
        users = json.loads((data_dir / REGION / "users" / f"{pool_id}.json").read_text(encoding="utf-8"))
        emails = [a["Value"] for a in users[0]["Attributes"] if a["Name"] == "email"]
        assert emails[0].endswith("@example.com")
        assert emails[0] != "member@example.com"
