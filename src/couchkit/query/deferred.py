"""
Deferred query chain.

A ``DeferredQuery`` is a persistent linked list: every node points at the
node it extends, so two chains built from the same base share that base and
never see each other's directives. Nodes are never mutated after creation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from .directives import QueryDirective

T = TypeVar("T")


@dataclass(frozen=True)
class DocumentQuerySource:
    """A Mango ``_find`` request against one database, before directives."""

    database: str
    selector: Dict[str, Any] = field(default_factory=dict)
    fields: Optional[Tuple[str, ...]] = None
    sort: Optional[Tuple[Any, ...]] = None
    limit: Optional[int] = None
    skip: Optional[int] = None


class DeferredQuery(Generic[T]):
    """A query source plus the ordered directives applied to it."""

    __slots__ = ("_source", "_directive", "_previous", "_depth")

    def __init__(self, source: Any, directive: Optional[QueryDirective] = None, previous: "Optional[DeferredQuery[T]]" = None):
        self._source = source
        self._directive = directive
        self._previous = previous
        self._depth = previous._depth + 1 if previous is not None else 0

    @classmethod
    def find(
        cls,
        database: str,
        selector: Optional[Dict[str, Any]] = None,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> "DeferredQuery[Dict[str, Any]]":
        """Start a chain over a Mango query on ``database``."""
        source = DocumentQuerySource(
            database=database,
            selector=dict(selector or {}),
            fields=tuple(fields) if fields is not None else None,
            sort=tuple(sort) if sort is not None else None,
            limit=limit,
            skip=skip,
        )
        return cls(source)

    @property
    def source(self) -> Any:
        return self._source

    @property
    def directive(self) -> Optional[QueryDirective]:
        return self._directive

    @property
    def previous(self) -> "Optional[DeferredQuery[T]]":
        return self._previous

    def append(self, directive: QueryDirective) -> "DeferredQuery[T]":
        """Return a new chain extending this one with ``directive``."""
        return DeferredQuery(self._source, directive, self)

    def rebase(self, source: Any) -> "DeferredQuery[T]":
        """Return a chain over ``source`` carrying the same directives in the same order."""
        rebased: DeferredQuery[T] = DeferredQuery(source)
        for directive in self.iterate():
            rebased = rebased.append(directive)
        return rebased

    def iterate(self) -> Iterator[QueryDirective]:
        """Yield the directives in the order they were applied."""
        stack: List[QueryDirective] = []
        node: Optional[DeferredQuery[T]] = self
        while node is not None:
            if node._directive is not None:
                stack.append(node._directive)
            node = node._previous
        return reversed(stack)

    @property
    def directives(self) -> Tuple[QueryDirective, ...]:
        return tuple(self.iterate())

    def __len__(self) -> int:
        return self._depth

    def __bool__(self) -> bool:
        return True

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_depth"):
            raise AttributeError(f"{type(self).__name__} is immutable")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        applied = ", ".join(str(d) for d in self.iterate())
        return f"DeferredQuery(source={self._source!r}, directives=[{applied}])"

    # Fluent forms of couchkit.query.extensions

    def _extend(self, operator: str, *args: Any) -> "DeferredQuery[T]":
        from couchkit.query import extensions

        return getattr(extensions, operator)(self, *args)

    def use_bookmark(self, bookmark: str) -> "DeferredQuery[T]":
        return self._extend("use_bookmark", bookmark)

    def with_read_quorum(self, quorum: int) -> "DeferredQuery[T]":
        return self._extend("with_read_quorum", quorum)

    def without_index_update(self) -> "DeferredQuery[T]":
        return self._extend("without_index_update")

    def from_stable(self) -> "DeferredQuery[T]":
        return self._extend("from_stable")

    def use_index(self, *indexes: Any) -> "DeferredQuery[T]":
        return self._extend("use_index", *indexes)

    def include_execution_stats(self) -> "DeferredQuery[T]":
        return self._extend("include_execution_stats")

    def include_conflicts(self) -> "DeferredQuery[T]":
        return self._extend("include_conflicts")
