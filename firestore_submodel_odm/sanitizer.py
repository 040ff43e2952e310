import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .documents import SanitizedDocument
from .errors import ConfigurationError
from .pydantic_compat import BaseModel, model_dump_compat

logger = logging.getLogger(__name__)

ChildrenFactory = Callable[[str], Dict[str, Any]]


class Sanitizer:
    """
    Shapes document data against a declared set of properties.

    Writes keep only declared properties and may be completed with defaults;
    reads drop any stored field the schema does not declare.  Nothing here
    touches the network and nothing fails because of missing or extra fields.
    """

    def __init__(self, properties: Iterable[str], defaults: Optional[Dict[str, Any]] = None):
        properties = list(properties or [])
        if not properties:
            raise ConfigurationError("`properties` must list at least one property.")
        self.properties = frozenset(properties)
        self.defaults: Dict[str, Any] = dict(defaults or {})

        unknown = set(self.defaults) - self.properties
        if unknown:
            raise ConfigurationError(
                f"Defaults given for undeclared properties: {sorted(unknown)}"
            )

    # --------------------------------------------------------------------------
    # Writes
    # --------------------------------------------------------------------------
    def prepare_for_write(
        self,
        data: Union[Mapping, BaseModel, None],
        merge_defaults: bool = False,
    ) -> Dict[str, Any]:
        """
        Return the subset of ``data`` that belongs to the schema.

        With ``merge_defaults`` every declared property missing from ``data``
        is filled with its default, when one exists.  Pydantic models are
        dumped with ``exclude_unset=True`` so unset fields count as missing.
        """
        if data is None:
            data = {}
        elif isinstance(data, BaseModel):
            data = model_dump_compat(data, exclude_unset=True)
        elif not isinstance(data, Mapping):
            raise TypeError(f"Cannot sanitize data of type {type(data).__name__}")

        sanitized = {key: value for key, value in data.items() if key in self.properties}
        dropped = set(data) - self.properties
        if dropped:
            logger.debug(f"Sanitize: dropping undeclared keys {sorted(dropped)}")

        if merge_defaults:
            for key, value in self.defaults.items():
                sanitized.setdefault(key, value)
        return sanitized

    # --------------------------------------------------------------------------
    # Reads
    # --------------------------------------------------------------------------
    def sanitize_from_read(
        self,
        raw,
        children_factory: Optional[ChildrenFactory] = None,
        collection_path: Optional[str] = None,
    ) -> Union[SanitizedDocument, List[SanitizedDocument], None]:
        """
        Sanitize a document snapshot or a collection of snapshots.

        * A single snapshot that does not exist, or no snapshot at all, yields
          ``None``.
        * A single existing snapshot yields one :class:`SanitizedDocument`.
        * Any iterable of snapshots (a query result) yields a list in the
          order the store returned it.

        ``children_factory`` receives each document ID and returns the
        subcollection handles to attach; ``collection_path`` is used to build
        each document path.
        """
        if raw is None or hasattr(raw, "exists"):
            return self._sanitize_snapshot(raw, children_factory, collection_path)
        return [
            doc
            for doc in (
                self._sanitize_snapshot(snap, children_factory, collection_path) for snap in raw
            )
            if doc is not None
        ]

    def _sanitize_snapshot(
        self,
        snapshot,
        children_factory: Optional[ChildrenFactory],
        collection_path: Optional[str],
    ):
        if snapshot is None or not snapshot.exists:
            return None
        raw_data = snapshot.to_dict() or {}
        reference = getattr(snapshot, "reference", None)
        return SanitizedDocument(
            id=snapshot.id,
            path=_snapshot_path(snapshot, collection_path),
            ref=reference,
            data={key: value for key, value in raw_data.items() if key in self.properties},
            children=children_factory(snapshot.id) if children_factory else {},
        )


def _snapshot_path(snapshot, collection_path: Optional[str]) -> str:
    if collection_path:
        return f"{collection_path}/{snapshot.id}"
    path = getattr(getattr(snapshot, "reference", None), "path", None)
    return path if isinstance(path, str) else snapshot.id
