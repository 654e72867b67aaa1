"""Named query directives appended to a deferred query."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class DirectiveKind(Enum):
    """Server directives a deferred query can carry."""

    BOOKMARK = "bookmark"
    READ_QUORUM = "read_quorum"
    SKIP_INDEX_UPDATE = "skip_index_update"
    STABLE_READS = "stable_reads"
    USE_INDEX = "use_index"
    EXECUTION_STATS = "execution_stats"
    CONFLICTS = "conflicts"


@dataclass(frozen=True)
class QueryDirective:
    """One validated directive and its arguments."""

    kind: DirectiveKind
    arguments: Tuple[Any, ...] = ()

    @property
    def name(self) -> str:
        return self.kind.value

    def __str__(self) -> str:
        if not self.arguments:
            return self.name
        if len(self.arguments) == 1:
            return f"{self.name}={self.arguments[0]}"
        return f"{self.name}={list(self.arguments)}"
