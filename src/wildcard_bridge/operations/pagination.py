"""Normalization of provider results into plain values.

Every operation result is either one object or an ordered list of objects.
Results of operations declared ``paginated`` are drained eagerly; any error
raised while fetching a later page propagates to the caller as the call's
error. Single objects are never drained: Stripe resources such as
``stripe.Customer`` expose ``auto_paging_iter`` as a classmethod that would
list every object of that type.
"""

import threading
from collections.abc import Iterable, Mapping
from typing import Any


def is_page_iterator(result: Any) -> bool:
    """Return True if the result can be drained page by page."""
    return hasattr(result, "auto_paging_iter")


def drain_pages(
    result: Any, paginated: bool, stop: threading.Event | None = None
) -> Any:
    """Drain a paginated result into a list; return other results unchanged.

    Args:
        result: Value returned by an operation's invoker.
        paginated: Whether the operation is declared to return pages.
        stop: Optional signal checked before each item; once set, draining
            ends early (used when the caller's deadline has passed).

    Returns:
        A list of items for paginated results, otherwise ``result`` itself.
    """
    if not paginated:
        return result

    if is_page_iterator(result):
        items = result.auto_paging_iter()
    elif isinstance(result, Iterable) and not isinstance(result, (Mapping, str, bytes)):
        items = result
    else:
        return result

    drained = []
    for item in items:
        if stop is not None and stop.is_set():
            break
        drained.append(item)
    return drained


def to_plain(value: Any) -> Any:
    """Recursively convert provider objects into JSON-compatible values."""
    if isinstance(value, Mapping):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if hasattr(value, "to_dict"):
        return to_plain(value.to_dict())
    return value
