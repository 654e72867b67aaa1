"""Deferred Mango query composition."""

from .deferred import DeferredQuery, DocumentQuerySource
from .directives import DirectiveKind, QueryDirective
from .extensions import (
    from_stable,
    include_conflicts,
    include_execution_stats,
    use_bookmark,
    use_index,
    with_read_quorum,
    without_index_update,
)
from .results import CouchList
from .translator import FindRequestTranslator

__all__ = [
    "DeferredQuery",
    "DocumentQuerySource",
    "DirectiveKind",
    "QueryDirective",
    "CouchList",
    "FindRequestTranslator",
    "use_bookmark",
    "with_read_quorum",
    "without_index_update",
    "from_stable",
    "use_index",
    "include_execution_stats",
    "include_conflicts",
]
