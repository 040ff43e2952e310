from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Union

from google.cloud.firestore_v1.base_query import BaseFilter, FieldFilter
from google.cloud.firestore_v1.field_path import FieldPath

from .enums import FirestoreOperators, OrderByDirection


class QueryConstraint:
    """
    A deferred query step such as ``order_by`` or ``limit``.

    Constraints are applied in the order they are listed, on both the async
    query used for reads and the sync query used for listeners.
    """

    def __init__(self, method: str, *args, **kwargs):
        self.method = method
        self.args = args
        self.kwargs = kwargs

    def __call__(self, query):
        return getattr(query, self.method)(*self.args, **self.kwargs)

    def __repr__(self) -> str:
        return f"QueryConstraint({self.method}, args={self.args!r}, kwargs={self.kwargs!r})"


# Anything accepted in a ``predicates`` list.
Predicate = Union[BaseFilter, tuple, QueryConstraint, Callable[[Any], Any]]


class FieldRef:
    """
    A document property usable on the left of a comparison.

    Comparing it yields a ``(path, operator, value)`` tuple, which
    :func:`apply_predicates` turns into a ``FieldFilter``:

    >>> field("age") >= 18
    ('age', FirestoreOperators.GTE, 18)
    """

    def __init__(self, path: str):
        self.path = path

    def __str__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"field({self.path!r})"

    def __hash__(self) -> int:
        return hash(self.path)

    def _filter(self, op: FirestoreOperators, value: Any) -> tuple:
        return (self.path, op, value)

    def __eq__(self, value):  # type: ignore[override]
        return self._filter(FirestoreOperators.EQ, value)

    def __ne__(self, value):  # type: ignore[override]
        return self._filter(FirestoreOperators.NE, value)

    def __lt__(self, value):
        return self._filter(FirestoreOperators.LT, value)

    def __le__(self, value):
        return self._filter(FirestoreOperators.LTE, value)

    def __gt__(self, value):
        return self._filter(FirestoreOperators.GT, value)

    def __ge__(self, value):
        return self._filter(FirestoreOperators.GTE, value)

    def in_(self, values: List[Any]) -> tuple:
        return self._filter(FirestoreOperators.IN, values)

    def not_in_(self, values: List[Any]) -> tuple:
        return self._filter(FirestoreOperators.NOT_IN, values)

    def array_contains(self, value: Any) -> tuple:
        return self._filter(FirestoreOperators.ARRAY_CONTAINS, value)

    def array_contains_any(self, values: List[Any]) -> tuple:
        return self._filter(FirestoreOperators.ARRAY_CONTAINS_ANY, values)


def field(name: str) -> FieldRef:
    return FieldRef(name)


def document_id() -> FieldRef:
    """Reference to the document ID, usable in filters and ordering."""
    return FieldRef(FieldPath.document_id())


def where(field_path: Union[str, FieldRef], op: Union[str, FirestoreOperators], value: Any) -> FieldFilter:
    return FieldFilter(str(field_path), _op_string(op), value)


def order_by(
    field_path: Union[str, FieldRef],
    direction: Union[str, OrderByDirection] = OrderByDirection.ASCENDING,
) -> QueryConstraint:
    return QueryConstraint("order_by", str(field_path), direction=str(direction))


def limit(count: int) -> QueryConstraint:
    return QueryConstraint("limit", count)


def limit_to_last(count: int) -> QueryConstraint:
    return QueryConstraint("limit_to_last", count)


def start_at(values: Any) -> QueryConstraint:
    return QueryConstraint("start_at", values)


def start_after(values: Any) -> QueryConstraint:
    return QueryConstraint("start_after", values)


def end_at(values: Any) -> QueryConstraint:
    return QueryConstraint("end_at", values)


def end_before(values: Any) -> QueryConstraint:
    return QueryConstraint("end_before", values)


def _op_string(op: Union[str, FirestoreOperators]) -> str:
    return op.value if isinstance(op, Enum) else op


def apply_predicates(query, predicates: Optional[Iterable[Predicate]]):
    """
    Apply ``predicates`` to ``query`` in order and return the resulting query.

    Filters are passed to ``where(filter=...)``; ``(field, op, value)`` tuples
    are turned into :class:`FieldFilter` first; any other callable receives the
    query and must return the next one.
    """
    for predicate in predicates or []:
        if isinstance(predicate, BaseFilter):
            query = query.where(filter=predicate)
        elif isinstance(predicate, tuple) and len(predicate) == 3:
            field_name, op, value = predicate
            query = query.where(filter=where(field_name, op, value))
        elif callable(predicate):
            query = predicate(query)
        else:
            raise TypeError(f"Unsupported query predicate: {predicate!r}")
    return query
