"""
Directive operators for deferred queries.

Each operator validates its arguments, then returns a new ``DeferredQuery``
that extends the incoming one with a single directive. Nothing is executed;
``couchkit.query.translator`` turns the chain into a ``_find`` request later.
"""

from typing import Any, Tuple

from couchkit.core.exceptions import InvalidArgumentError

from .deferred import DeferredQuery
from .directives import DirectiveKind, QueryDirective


def _require_query(query: Any) -> DeferredQuery:
    if query is None:
        raise InvalidArgumentError("Query cannot be None.", argument="query")
    if not isinstance(query, DeferredQuery):
        raise InvalidArgumentError(
            f"Expected a DeferredQuery, got {type(query).__name__}.", argument="query"
        )
    return query


def use_bookmark(query: DeferredQuery, bookmark: str) -> DeferredQuery:
    """
    Paginate the results using a bookmark.

    Args:
        query: The query to extend.
        bookmark: Opaque bookmark string returned by a previous ``_find`` page.

    Returns:
        A new query carrying the bookmark directive.
    """
    query = _require_query(query)
    if not isinstance(bookmark, str) or not bookmark:
        raise InvalidArgumentError("Bookmark cannot be empty.", argument="bookmark")
    return query.append(QueryDirective(DirectiveKind.BOOKMARK, (bookmark,)))


def with_read_quorum(query: DeferredQuery, quorum: int) -> DeferredQuery:
    """
    Require documents to be read from at least ``quorum`` replicas.

    Args:
        query: The query to extend.
        quorum: Read quorum, at least 1.

    Returns:
        A new query carrying the read-quorum directive.
    """
    query = _require_query(query)
    if isinstance(quorum, bool) or not isinstance(quorum, int):
        raise InvalidArgumentError("Read quorum must be an integer.", argument="quorum")
    if quorum < 1:
        raise InvalidArgumentError("Read quorum cannot be less than 1.", argument="quorum")
    return query.append(QueryDirective(DirectiveKind.READ_QUORUM, (quorum,)))


def without_index_update(query: DeferredQuery) -> DeferredQuery:
    """Serve the query from the index as it is, without refreshing it first."""
    query = _require_query(query)
    return query.append(QueryDirective(DirectiveKind.SKIP_INDEX_UPDATE))


def from_stable(query: DeferredQuery) -> DeferredQuery:
    """Read from a stable set of shards."""
    query = _require_query(query)
    return query.append(QueryDirective(DirectiveKind.STABLE_READS))


def _normalize_indexes(indexes: Tuple[Any, ...]) -> Tuple[str, ...]:
    # use_index(q, ["ddoc", "name"]) and use_index(q, "ddoc", "name") are equivalent
    if len(indexes) == 1 and isinstance(indexes[0], (list, tuple)):
        indexes = tuple(indexes[0])
    elif len(indexes) == 1 and indexes[0] is None:
        raise InvalidArgumentError("Indexes cannot be None.", argument="indexes")

    if len(indexes) not in (1, 2):
        raise InvalidArgumentError(
            "Only up to two index names can be provided: the design document and, optionally, the index.",
            argument="indexes",
        )
    for index in indexes:
        if not isinstance(index, str) or not index:
            raise InvalidArgumentError("Index names must be non-empty strings.", argument="indexes")
    return indexes


def use_index(query: DeferredQuery, *indexes: Any) -> DeferredQuery:
    """
    Instruct the query to use a specific index.

    Args:
        query: The query to extend.
        *indexes: The design document name, optionally followed by the index name.
            A single list or tuple of those names is accepted too.

    Returns:
        A new query carrying the use-index directive.
    """
    query = _require_query(query)
    return query.append(QueryDirective(DirectiveKind.USE_INDEX, _normalize_indexes(indexes)))


def include_execution_stats(query: DeferredQuery) -> DeferredQuery:
    """Ask the server to return execution statistics with the results."""
    query = _require_query(query)
    return query.append(QueryDirective(DirectiveKind.EXECUTION_STATS))


def include_conflicts(query: DeferredQuery) -> DeferredQuery:
    """Include conflicting revisions in the returned documents."""
    query = _require_query(query)
    return query.append(QueryDirective(DirectiveKind.CONFLICTS))
