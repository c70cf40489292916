"""
pslib.users — Enumerate every user in a Cognito user pool.

With configured custom attributes the listing first asks for an explicit
attribute list: every Cognito standard attribute plus those custom ones.
Pools that do not define one of the custom attributes reject the request with
InvalidParameterException ("One or more requested attributes do not exist");
the enumeration is then restarted once without an attribute filter. Without
custom attributes the unfiltered listing is used from the start, so Cognito
returns the full user record.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pslib.aws_client import aws_error_code, aws_error_message
from pslib.pagination import items_at, paged_call, token_from, with_token

logger = logging.getLogger(__name__)

# Attributes every user pool schema carries
STANDARD_ATTRIBUTES = (
    "sub",
    "email",
    "email_verified",
    "phone_number",
    "phone_number_verified",
    "name",
    "given_name",
    "family_name",
    "middle_name",
    "nickname",
    "preferred_username",
    "profile",
    "picture",
    "website",
    "gender",
    "birthdate",
    "zoneinfo",
    "locale",
    "address",
    "updated_at",
)

EXTENDED = "extended"
DEGRADED = "degraded"

_UNSUPPORTED_ATTRIBUTE_CODE = "InvalidParameterException"
_UNSUPPORTED_ATTRIBUTE_TEXT = "attributes do not exist"


def is_unsupported_attribute_error(error: Exception) -> bool:
    """True for the error Cognito raises when AttributesToGet names an unknown attribute."""
    return (
        aws_error_code(error) == _UNSUPPORTED_ATTRIBUTE_CODE
        and _UNSUPPORTED_ATTRIBUTE_TEXT in aws_error_message(error)
    )


def attributes_for(mode: str, custom_attributes: Sequence[str] = ()) -> Optional[List[str]]:
    """AttributesToGet for ``mode``; None means no filter (full record)."""
    if mode != EXTENDED:
        return None
    attributes = list(STANDARD_ATTRIBUTES)
    attributes.extend(a for a in custom_attributes if a not in attributes)
    return attributes


def _list_users(client, pool_id: str, attributes: Optional[List[str]]) -> List[Dict[str, Any]]:
    params: Dict[str, Any] = {"UserPoolId": pool_id}
    if attributes is not None:
        params["AttributesToGet"] = attributes
    return paged_call(
        with_token(client.list_users, "PaginationToken"),
        params,
        items_at("Users"),
        token_from("PaginationToken"),
    )


def list_pool_users(
    client,
    pool_id: str,
    custom_attributes: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    """
    Return every user record in ``pool_id``.

    Args:
        client: boto3 ``cognito-idp`` client
        pool_id: User pool ID
        custom_attributes: Extra attribute names (e.g. ``custom:tenant``) to request

    Returns:
        list: User records in listing order

    Raises:
        botocore.exceptions.ClientError: Any failure other than the one
            unsupported-attribute downgrade
    """
    mode = EXTENDED if custom_attributes else DEGRADED

    try:
        return _list_users(client, pool_id, attributes_for(mode, custom_attributes))
    except Exception as e:
        if mode != EXTENDED or not is_unsupported_attribute_error(e):
            raise
        logger.info(
            "Pool %s rejected custom attributes (%s); listing full records without a filter",
            pool_id,
            aws_error_message(e),
        )

    return _list_users(client, pool_id, attributes_for(DEGRADED))


def user_attribute(user: Dict[str, Any], name: str, default: Any = None) -> Any:
    """Value of the named attribute on a user record."""
    for attr in user.get("Attributes", []) or []:
        if attr.get("Name") == name:
            return attr.get("Value")
    return default
