"""
pslib.aws_client — boto3 session and Cognito client factory.

Provides retry/timeout-configured clients, automatic FIPS endpoint injection
for GovCloud regions, support for the legacy AWS_ACCESS_ID / AWS_SECRET_KEY
credential variables, and region validation.

Imports from pslib.config (safe — config has no dependencies).
Zero dependency on utils.py.
"""

import logging
import os
import re
from typing import Optional

import boto3
from botocore.config import Config

from pslib.config import config_value

logger = logging.getLogger(__name__)

USER_POOL_SERVICE = "cognito-idp"
IDENTITY_POOL_SERVICE = "cognito-identity"

# ---------------------------------------------------------------------------
# Region validation
# ---------------------------------------------------------------------------


def is_aws_region(region: str) -> bool:
    """
    Check if a region is a valid AWS region.

    Args:
        region: AWS region name

    Returns:
        bool: True if valid AWS region, False otherwise
    """
    # Pattern supports: us-east-1, us-gov-west-1, ap-southeast-2, etc.
    pattern = r"^[a-z]{2}(-gov)?-[a-z]+-[0-9]+$"
    return bool(re.match(pattern, region or ""))


def validate_aws_region(region: str) -> bool:
    """
    Validate that a region is a valid AWS region and provide helpful error if not.

    Args:
        region: AWS region name

    Returns:
        bool: True if valid, False otherwise
    """
    if not is_aws_region(region):
        logger.error("Invalid AWS region: %s", region)
        logger.error(
            "Valid AWS regions include: us-east-1, eu-central-1, eu-west-1, ap-southeast-1"
        )
        return False

    return True


# ---------------------------------------------------------------------------
# Session and client factory
# ---------------------------------------------------------------------------


def get_aws_session(region_name: Optional[str] = None):
    """
    Create a boto3 session for the specified region.

    Explicit keys from AWS_ACCESS_ID / AWS_SECRET_KEY (and AWS_SESSION_TOKEN)
    take precedence; otherwise boto3's default credential chain applies.

    Args:
        region_name: AWS region (None = default from environment)

    Returns:
        boto3.Session: Configured session
    """
    access_key = os.environ.get("AWS_ACCESS_ID")
    secret_key = os.environ.get("AWS_SECRET_KEY")

    if access_key and secret_key:
        logger.debug("Using credentials from AWS_ACCESS_ID/AWS_SECRET_KEY")
        return boto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=os.environ.get("AWS_SESSION_TOKEN"),
            region_name=region_name,
        )

    return boto3.Session(region_name=region_name)


def get_boto3_client(service: str, region_name: Optional[str] = None, **kwargs):
    """
    Create boto3 client with standard configuration including retries.

    Automatically injects ``use_fips_endpoint=True`` for GovCloud regions
    (``us-gov-west-1``, ``us-gov-east-1``).

    Args:
        service: AWS service name (e.g., 'cognito-idp', 'cognito-identity')
        region_name: AWS region name (optional)
        **kwargs: Additional arguments to pass to client creation

    Returns:
        boto3.client: Configured boto3 client with retry logic
    """
    sdk_config = config_value("aws_sdk_config", default={}) or {}

    retry_config = sdk_config.get("retries", {"max_attempts": 5, "mode": "adaptive"})
    connect_timeout = sdk_config.get("connect_timeout", 10)
    read_timeout = sdk_config.get("read_timeout", 60)

    config = Config(
        retries=retry_config,
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )

    if region_name and region_name.startswith("us-gov-") and "use_fips_endpoint" not in kwargs:
        kwargs["use_fips_endpoint"] = True

    session = get_aws_session(region_name)
    return session.client(service, config=config, **kwargs)


def get_user_pool_client(region_name: str):
    """Client for user pools (cognito-idp)."""
    return get_boto3_client(USER_POOL_SERVICE, region_name=region_name)


def get_identity_pool_client(region_name: str):
    """Client for identity pools (cognito-identity)."""
    return get_boto3_client(IDENTITY_POOL_SERVICE, region_name=region_name)


# ---------------------------------------------------------------------------
# ClientError inspection
# ---------------------------------------------------------------------------

NOT_FOUND_CODES = {"ResourceNotFoundException", "UserPoolNotFoundException"}


def aws_error_code(error: Exception) -> str:
    """Error code of a botocore ClientError, or '' for any other exception."""
    response = getattr(error, "response", None) or {}
    return response.get("Error", {}).get("Code", "")


def aws_error_message(error: Exception) -> str:
    """Error message of a botocore ClientError, falling back to str(error)."""
    response = getattr(error, "response", None) or {}
    return response.get("Error", {}).get("Message") or str(error)


def is_not_found(error: Exception) -> bool:
    return aws_error_code(error) in NOT_FOUND_CODES
