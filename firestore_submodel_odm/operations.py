import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .autobatcher import Autobatcher
from .documents import DocumentHandle, SanitizedDocument
from .listeners import ListenerRegistry, ListenerSubscription, LiveData
from .query_constraints import Predicate, apply_predicates
from .schema import CollectionSchema

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------
# Path strategies
# --------------------------------------------------------------------------
class RootCollectionPath:
    """Top-level collection: the path is the collection name."""

    def __init__(self, name: str):
        self.name = name

    def collection_path(self) -> str:
        return self.name


class ParentDocumentPath:
    """Subcollection of one specific parent document."""

    def __init__(self, parent_path: str, name: str):
        self.parent_path = parent_path
        self.name = name

    def collection_path(self) -> str:
        return f"{self.parent_path}/{self.name}"


class DocumentCollectionOperations:
    """
    Read, write, query and listener operations on one concrete collection.

    The collection's location comes from a path strategy, so the same
    operations serve top-level collections (:class:`~.model.Model`) and
    subcollections bound to a parent document (:class:`~.submodel.SubmodelInstance`).
    Every document handed back carries ``children``: one bound
    :class:`~.submodel.SubmodelInstance` per subcollection registered on the
    schema.
    """

    def __init__(self, schema: CollectionSchema, path_strategy):
        self.schema = schema
        self._path = path_strategy
        self.listeners = ListenerRegistry(owner=self.collection_path)

    # --------------------------------------------------------------------------
    # Location
    # --------------------------------------------------------------------------
    @property
    def collection_name(self) -> str:
        return self.schema.name

    @property
    def collection_path(self) -> str:
        return self._path.collection_path()

    @property
    def sanitizer(self):
        return self.schema.sanitizer

    def _db(self):
        db = self.schema.db
        if not db:
            raise RuntimeError("Database must be initialized before using the model.")
        return db

    def _collection_ref(self):
        return self._db().client.collection(self.collection_path)

    def _listener_collection_ref(self):
        return self._db().listener_client.collection(self.collection_path)

    def child_instances(self, doc_id: str) -> Dict[str, Any]:
        """Build one bound subcollection handle per registered child schema."""
        from .submodel import SubmodelInstance

        doc_path = f"{self.collection_path}/{doc_id}"
        return {
            name: SubmodelInstance(child_schema, doc_path)
            for name, child_schema in self.schema.graph.children_of(self.schema).items()
        }

    def _handle(self, doc_ref) -> DocumentHandle:
        return DocumentHandle(
            id=doc_ref.id,
            path=f"{self.collection_path}/{doc_ref.id}",
            ref=doc_ref,
            children=self.child_instances(doc_ref.id),
        )

    def _sanitize(self, raw):
        return self.sanitizer.sanitize_from_read(
            raw,
            children_factory=self.child_instances,
            collection_path=self.collection_path,
        )

    # --------------------------------------------------------------------------
    # Writes
    # --------------------------------------------------------------------------
    async def write_to_new_doc(
        self,
        data,
        merge_defaults: bool = False,
        autobatcher: Optional[Autobatcher] = None,
    ) -> DocumentHandle:
        """
        Sanitize ``data`` and write it to a new document with a generated ID.

        With an ``autobatcher`` the write is only queued; the returned handle
        is valid right away but the document exists once the batch commits.
        """
        sanitized = self.sanitizer.prepare_for_write(data, merge_defaults)
        doc_ref = self._collection_ref().document()

        if autobatcher is not None:
            autobatcher.bind(self._db())
            await autobatcher.enqueue_create(doc_ref, sanitized)
        else:
            await doc_ref.set(sanitized)

        logger.debug(f"Write new doc: {self.collection_path}/{doc_ref.id}, data={sanitized}")
        return self._handle(doc_ref)

    async def write_to_id(
        self,
        doc_id: str,
        data,
        merge_defaults: bool = False,
        merge_existing: bool = False,
        transaction=None,
        autobatcher: Optional[Autobatcher] = None,
    ) -> DocumentHandle:
        """
        Sanitize ``data`` and write it to the document ``doc_id``, creating
        the document if needed.

        By default the document is replaced: stored fields missing from the
        sanitized payload are deleted.  ``merge_existing`` asks Firestore to
        merge instead, keeping untouched fields and letting the payload win on
        shared keys.  Defaults (``merge_defaults``) only fill keys absent from
        ``data`` and are part of the payload, so they also overwrite stored
        values when merging.
        """
        if transaction is not None and autobatcher is not None:
            raise ValueError("Pass either a transaction or an autobatcher, not both.")

        sanitized = self.sanitizer.prepare_for_write(data, merge_defaults)
        doc_ref = self._collection_ref().document(doc_id)

        if transaction is not None:
            transaction.set(doc_ref, sanitized, merge=merge_existing)
        elif autobatcher is not None:
            autobatcher.bind(self._db())
            await autobatcher.enqueue_set(doc_ref, sanitized, merge_existing=merge_existing)
        else:
            await doc_ref.set(sanitized, merge=merge_existing)

        logger.debug(
            f"Write to id: {self.collection_path}/{doc_id}, merge={merge_existing}, data={sanitized}"
        )
        return self._handle(doc_ref)

    async def delete_by_id(
        self,
        doc_id: str,
        transaction=None,
        autobatcher: Optional[Autobatcher] = None,
    ) -> None:
        if transaction is not None and autobatcher is not None:
            raise ValueError("Pass either a transaction or an autobatcher, not both.")

        doc_ref = self._collection_ref().document(doc_id)
        if transaction is not None:
            transaction.delete(doc_ref)
        elif autobatcher is not None:
            autobatcher.bind(self._db())
            await autobatcher.enqueue_delete(doc_ref)
        else:
            await doc_ref.delete()
        logger.debug(f"Delete: {self.collection_path}/{doc_id}")

    # --------------------------------------------------------------------------
    # Reads
    # --------------------------------------------------------------------------
    async def get_by_id(self, doc_id: str, transaction=None) -> Optional[SanitizedDocument]:
        """Return the sanitized document, or ``None`` if it does not exist."""
        doc_ref = self._collection_ref().document(doc_id)
        if transaction is not None:
            snapshot = await doc_ref.get(transaction=transaction)
        else:
            snapshot = await doc_ref.get()
        return self._sanitize(snapshot)

    async def get_by_query(self, predicates: Optional[Iterable[Predicate]] = None) -> List[SanitizedDocument]:
        """
        Return every document matching ``predicates``, in the order Firestore
        returns them.  No match gives an empty list.
        """
        query = apply_predicates(self._collection_ref(), predicates)
        snapshots = [snapshot async for snapshot in query.stream()]
        return self._sanitize(snapshots)

    # --------------------------------------------------------------------------
    # Listeners
    # --------------------------------------------------------------------------
    def _document_listener(self, doc_id: str, callback: Callable) -> Tuple[Any, Callable]:
        doc_ref = self._listener_collection_ref().document(doc_id)

        def on_change(snapshot):
            callback(self._sanitize(snapshot) if snapshot is not None else None)

        return doc_ref, on_change

    def _query_listener(self, predicates: Optional[Iterable[Predicate]], callback: Callable) -> Tuple[Any, Callable]:
        query = apply_predicates(self._listener_collection_ref(), predicates)

        def on_change(snapshots):
            callback(self._sanitize(snapshots))

        return query, on_change

    def add_listener_by_id(self, name: str, doc_id: str, callback: Callable[[Optional[SanitizedDocument]], None]) -> None:
        """
        Call ``callback`` with the sanitized document on every change, starting
        with the current state; ``None`` means the document does not exist.
        """
        self.listeners.add_document(name, *self._document_listener(doc_id, callback))

    def add_listener_by_query(
        self,
        name: str,
        predicates: Optional[Iterable[Predicate]],
        callback: Callable[[List[SanitizedDocument]], None],
    ) -> None:
        """Call ``callback`` with the full matching list on every change."""
        self.listeners.add_query(name, *self._query_listener(predicates, callback))

    def scoped_listener_by_id(self, name: str, doc_id: str, callback: Callable) -> ListenerSubscription:
        self.add_listener_by_id(name, doc_id, callback)
        return ListenerSubscription(self.listeners, name)

    def scoped_listener_by_query(self, name: str, predicates, callback: Callable) -> ListenerSubscription:
        self.add_listener_by_query(name, predicates, callback)
        return ListenerSubscription(self.listeners, name)

    def live_data_by_id(self, name: str, doc_id: str, on_change: Optional[Callable] = None) -> LiveData:
        live = LiveData(self.listeners, name, on_change=on_change)
        self.add_listener_by_id(name, doc_id, live.deliver)
        return live

    def live_data_by_query(self, name: str, predicates, on_change: Optional[Callable] = None) -> LiveData:
        live = LiveData(self.listeners, name, on_change=on_change, initial_value=[])
        self.add_listener_by_query(name, predicates, live.deliver)
        return live

    def remove_listener(self, name: str) -> None:
        self.listeners.remove(name)

    def remove_all_listeners(self) -> None:
        self.listeners.remove_all()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.collection_path!r})"
