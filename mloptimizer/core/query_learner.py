"""
Query Pattern Learner

Accumulates timing statistics per normalised query shape and proposes index
columns for shapes that are systematically slow.
"""

import re
import threading
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from mloptimizer.config.core_configs import QuerySettings
from mloptimizer.utils.logger import get_logger

_QUOTES = re.compile(r"['\"]")
_NUMBERS = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")

_PREDICATE_COLUMN = re.compile(
    r"\b(?:WHERE|AND|OR)\s+(?:\w+\.)?(\w+)\s*(?:=|<>|!=|<=|>=|<|>|\bIN\b|\bLIKE\b|\bIS\b|\bBETWEEN\b)",
    re.IGNORECASE,
)
_JOIN_COLUMN = re.compile(
    r"\bJOIN\s+\w+(?:\s+(?:AS\s+)?\w+)?\s+ON\s+(?:\w+\.)?(\w+)",
    re.IGNORECASE,
)


@dataclass
class QueryExecution:
    """One data-access operation reported by a handler"""

    query: str
    duration: float  # ms


@dataclass
class QueryPattern:
    """Running statistics for one normalised query shape"""

    pattern: str
    count: int = 0
    total_time: float = 0.0
    avg_time: float = 0.0
    suggested_indexes: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)


class QueryPatternLearner:
    """Online learner over executed queries"""

    def __init__(self, settings: Optional[QuerySettings] = None):
        self.settings = settings or QuerySettings()
        self._patterns: Dict[str, QueryPattern] = {}
        self._lock = threading.RLock()

        self.logger = get_logger(__name__)

    @staticmethod
    def normalize(query: str) -> str:
        """Reduce a query to its shape.

        >>> QueryPatternLearner.normalize("SELECT * FROM t WHERE id = 42")
        'select * from t where id = n'
        """
        shape = _QUOTES.sub("", query)
        shape = _NUMBERS.sub("N", shape)
        shape = _WHITESPACE.sub(" ", shape).strip()
        return shape.lower()

    @staticmethod
    def extract_index_columns(query: str) -> List[str]:
        """Columns referenced by predicates and join conditions, in order"""
        columns: List[str] = []
        for regex in (_PREDICATE_COLUMN, _JOIN_COLUMN):
            for match in regex.finditer(query):
                column = match.group(1).lower()
                if column not in columns:
                    columns.append(column)
        return columns

    def learn(
        self,
        executions: Iterable[QueryExecution],
        total_duration: Optional[float] = None,
    ) -> int:
        """Fold a batch of executions into the pattern statistics.

        ``total_duration`` is the wall time of the request that issued the
        queries; it is only used for logging. Returns the number of
        executions processed.
        """
        s = self.settings
        processed = 0

        with self._lock:
            for execution in executions:
                key = self.normalize(execution.query)
                stats = self._patterns.get(key)
                if stats is None:
                    stats = self._patterns[key] = QueryPattern(pattern=key)

                stats.count += 1
                stats.total_time += execution.duration
                stats.avg_time = stats.total_time / stats.count
                if len(stats.examples) < s.max_examples:
                    stats.examples.append(execution.query)

                if stats.avg_time > s.slow_query_ms and stats.count >= s.min_occurrences:
                    columns = self.extract_index_columns(execution.query)
                    if columns and columns != stats.suggested_indexes:
                        stats.suggested_indexes = columns
                        self.logger.info(
                            f"Index suggestion for slow query pattern "
                            f"({stats.avg_time:.1f}ms avg): {columns}",
                            pattern=key,
                        )
                processed += 1

        if processed and total_duration is not None:
            self.logger.debug(
                f"Learned {processed} queries from a {total_duration:.1f}ms request"
            )
        return processed

    def get_optimization_suggestions(self) -> Dict[str, List[str]]:
        """Map of slow query pattern to suggested index columns"""
        with self._lock:
            return {
                key: list(p.suggested_indexes)
                for key, p in self._patterns.items()
                if p.suggested_indexes
            }

    def get_patterns(self) -> List[QueryPattern]:
        with self._lock:
            return [
                replace(
                    p,
                    suggested_indexes=list(p.suggested_indexes),
                    examples=list(p.examples),
                )
                for p in self._patterns.values()
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._patterns)
