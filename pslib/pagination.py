"""
pslib.pagination — Cursor-following fetch for paginated Cognito listings.

User enumeration has to restart a listing from the first page with a
different request shape (dropping AttributesToGet), so the cursor is driven
here instead of through boto3 paginators. This module drains any
``action -> page -> next token`` API into one ordered list, driven by three
hooks supplied by the caller.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

# action(params, next_token) -> page
Action = Callable[[Dict[str, Any], Optional[Any]], Dict[str, Any]]
# accessor(page) -> items on that page
Accessor = Callable[[Dict[str, Any]], Optional[List[Any]]]
# get_next_token(page, items_so_far) -> token, or None when the listing is done
NextToken = Callable[[Dict[str, Any], List[Any]], Optional[Any]]


def iter_paged_call(
    action: Action,
    params: Dict[str, Any],
    accessor: Accessor,
    get_next_token: NextToken,
) -> Iterator[Any]:
    """
    Yield every item of a paginated listing, first page first.

    The first call is made with ``next_token=None``. Iteration stops as soon as
    ``get_next_token`` returns a falsy value; a page with no items but a token
    keeps the listing going. Errors raised by ``action`` propagate unchanged.

    Args:
        action: Performs one remote call for ``params`` and the current token
        params: Base parameters passed unchanged to every call
        accessor: Extracts the item list from a page (None counts as empty)
        get_next_token: Derives the next token from a page and the items so far

    Yields:
        Items in arrival order
    """
    items: List[Any] = []
    next_token = None
    page_num = 0

    while True:
        page = action(params, next_token)
        page_num += 1

        page_items = (accessor(page) if page else None) or []
        items.extend(page_items)
        yield from page_items

        next_token = get_next_token(page, items) if page else None
        if not next_token:
            break

    logger.debug("Fetched %d item(s) across %d page(s)", len(items), page_num)


def paged_call(
    action: Action,
    params: Dict[str, Any],
    accessor: Accessor,
    get_next_token: NextToken,
) -> List[Any]:
    """Drain a paginated listing into a list. See iter_paged_call()."""
    return list(iter_paged_call(action, params, accessor, get_next_token))


# ---------------------------------------------------------------------------
# Hook builders for boto3 responses
# ---------------------------------------------------------------------------


def items_at(key: str) -> Accessor:
    """Accessor reading the item list stored under ``key``."""
    return lambda page: page.get(key)


def token_from(key: str) -> NextToken:
    """get_next_token reading the continuation token stored under ``key``."""
    return lambda page, _items: page.get(key)


def with_token(call: Callable[..., Dict[str, Any]], token_param: str = "NextToken") -> Action:
    """
    Adapt a boto3 client method to the ``action(params, next_token)`` shape.

    The token parameter is omitted on the first call since boto3 rejects
    ``None`` for string parameters.
    """

    def action(params: Dict[str, Any], next_token: Optional[Any]) -> Dict[str, Any]:
        request = dict(params)
        if next_token:
            request[token_param] = next_token
        return call(**request)

    return action
