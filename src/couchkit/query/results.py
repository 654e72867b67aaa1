"""Results of an executed Mango query."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd


@dataclass
class CouchList:
    """Documents returned by ``_find`` along with the response metadata."""

    docs: List[Dict[str, Any]] = field(default_factory=list)
    bookmark: Optional[str] = None
    execution_stats: Optional[Dict[str, Any]] = None
    warning: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "CouchList":
        return cls(
            docs=list(data.get("docs", [])),
            bookmark=data.get("bookmark"),
            execution_stats=data.get("execution_stats"),
            warning=data.get("warning"),
        )

    def extend(self, page: "CouchList") -> None:
        """Append a following page; bookmark and stats follow the newest page."""
        self.docs.extend(page.docs)
        self.bookmark = page.bookmark
        if page.execution_stats is not None:
            self.execution_stats = page.execution_stats
        if page.warning:
            self.warning = page.warning

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(self.docs) if self.docs else pd.DataFrame()

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.docs)

    def __len__(self) -> int:
        return len(self.docs)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self.docs[index]
