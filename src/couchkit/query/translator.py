"""Translation of a deferred query chain into a CouchDB ``_find`` request body."""

import copy
import logging
from typing import Any, Callable, Dict

from couchkit.core.exceptions import InvalidArgumentError, UnsupportedError

from .deferred import DeferredQuery, DocumentQuerySource
from .directives import DirectiveKind, QueryDirective

logger = logging.getLogger(__name__)


def _bookmark(body: Dict[str, Any], directive: QueryDirective) -> None:
    body["bookmark"] = directive.arguments[0]


def _read_quorum(body: Dict[str, Any], directive: QueryDirective) -> None:
    body["r"] = directive.arguments[0]


def _skip_index_update(body: Dict[str, Any], directive: QueryDirective) -> None:
    body["update"] = False


def _stable(body: Dict[str, Any], directive: QueryDirective) -> None:
    body["stable"] = True


def _use_index(body: Dict[str, Any], directive: QueryDirective) -> None:
    indexes = directive.arguments
    body["use_index"] = indexes[0] if len(indexes) == 1 else list(indexes)


def _execution_stats(body: Dict[str, Any], directive: QueryDirective) -> None:
    body["execution_stats"] = True


def _conflicts(body: Dict[str, Any], directive: QueryDirective) -> None:
    body["conflicts"] = True


class FindRequestTranslator:
    """Walks a ``DeferredQuery`` and builds the JSON body of a ``_find`` request."""

    DIRECTIVE_HANDLERS: Dict[DirectiveKind, Callable[[Dict[str, Any], QueryDirective], None]] = {
        DirectiveKind.BOOKMARK: _bookmark,
        DirectiveKind.READ_QUORUM: _read_quorum,
        DirectiveKind.SKIP_INDEX_UPDATE: _skip_index_update,
        DirectiveKind.STABLE_READS: _stable,
        DirectiveKind.USE_INDEX: _use_index,
        DirectiveKind.EXECUTION_STATS: _execution_stats,
        DirectiveKind.CONFLICTS: _conflicts,
    }

    def source_of(self, query: DeferredQuery) -> DocumentQuerySource:
        """Return the document source of ``query`` or raise ``UnsupportedError``."""
        if query is None:
            raise InvalidArgumentError("Query cannot be None.", argument="query")
        if not isinstance(query, DeferredQuery) or not isinstance(query.source, DocumentQuerySource):
            raise UnsupportedError(
                "Query directives are only supported on CouchDB document queries, "
                f"not on {type(getattr(query, 'source', query)).__name__}.",
                argument="query",
            )
        return query.source

    def translate(self, query: DeferredQuery) -> Dict[str, Any]:
        """
        Build the ``_find`` body for ``query``.

        Directives are applied in order, so a directive repeated later in the
        chain overrides the earlier one. The chain is only read.

        Args:
            query: The deferred query to translate.

        Returns:
            A JSON-serializable request body.

        Raises:
            UnsupportedError: The chain was not built on a ``DocumentQuerySource``.
        """
        source = self.source_of(query)

        body: Dict[str, Any] = {"selector": copy.deepcopy(source.selector)}
        if source.fields is not None:
            body["fields"] = list(source.fields)
        if source.sort is not None:
            body["sort"] = copy.deepcopy(list(source.sort))
        if source.limit is not None:
            body["limit"] = source.limit
        if source.skip is not None:
            body["skip"] = source.skip

        for directive in query.iterate():
            handler = self.DIRECTIVE_HANDLERS.get(directive.kind)
            if handler is None:
                raise UnsupportedError(f"Unsupported query directive: {directive.name}", argument="query")
            handler(body, directive)

        logger.debug(f"Translated query on '{source.database}' with {len(query)} directive(s)")
        return body
