from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from .autobatcher import Autobatcher
from .documents import DocumentHandle, SanitizedDocument
from .errors import ConfigurationError, PathMismatchError
from .firestore_client import FirestoreDB
from .listeners import ListenerRegistry
from .model import Model
from .operations import DocumentCollectionOperations, ParentDocumentPath
from .query_constraints import Predicate
from .schema import CollectionSchema, build_declaration


class SubmodelInstance(DocumentCollectionOperations):
    """
    A subcollection bound to one parent document, e.g. the ``groups`` of
    ``profiles/abc``.  Instances are created for every document returned by
    the parent collection and exposed through its ``children`` map.
    """

    def __init__(self, schema: CollectionSchema, parent_path: str):
        self.parent_path = parent_path
        super().__init__(schema, ParentDocumentPath(parent_path, schema.name))


class Submodel:
    """
    Declaration of a subcollection that lives under every document of its
    parent collection.

    The submodel registers itself with ``parent`` when constructed, after
    which documents read or written through the parent expose a bound
    :class:`SubmodelInstance` under ``children[name]``.  The submodel itself
    offers path-addressed operations for callers that already know the full
    Firestore path; such paths must end in this subcollection.

    Example
    -------
    >>> Group = Submodel(name="groups", properties=["name"], parent=Profile)
    >>> await Group.write_to_path("profiles/abc/groups/g1", {"name": "Welcome"})
    """

    def __init__(
        self,
        name: str,
        properties: Iterable[str],
        defaults: Optional[dict] = None,
        parent: Union[Model, "Submodel", None] = None,
    ):
        if not isinstance(parent, (Model, Submodel)):
            raise ConfigurationError(
                "`parent` must be specified and be a Model or Submodel when declaring a submodel."
            )
        declaration = build_declaration(name, properties, defaults)
        self.schema = parent.schema.graph.declare(declaration, parent=parent.schema)
        self.listeners = ListenerRegistry(owner=self.schema.key)

    @property
    def collection_name(self) -> str:
        return self.schema.name

    @property
    def sanitizer(self):
        return self.schema.sanitizer

    @property
    def subcollections(self) -> Dict[str, CollectionSchema]:
        return self.schema.graph.children_of(self.schema)

    def initialize_db(self, db: FirestoreDB) -> None:
        self.schema.graph.initialize_db(db)

    # --------------------------------------------------------------------------
    # Instances and path checks
    # --------------------------------------------------------------------------
    def instance(self, parent_path: str) -> SubmodelInstance:
        """Bind this subcollection to the parent document at ``parent_path``."""
        segments = _segments(parent_path)
        if not segments or len(segments) % 2:
            raise PathMismatchError(self.collection_name, parent_path)
        return SubmodelInstance(self.schema, "/".join(segments))

    def _instance_for_collection(self, path: str) -> SubmodelInstance:
        segments = _segments(path)
        if len(segments) < 3 or len(segments) % 2 == 0 or segments[-1] != self.collection_name:
            raise PathMismatchError(self.collection_name, path)
        return SubmodelInstance(self.schema, "/".join(segments[:-1]))

    def _instance_and_id_for_document(self, path: str) -> Tuple[SubmodelInstance, str]:
        segments = _segments(path)
        if len(segments) < 4 or len(segments) % 2 or segments[-2] != self.collection_name:
            raise PathMismatchError(self.collection_name, path)
        return SubmodelInstance(self.schema, "/".join(segments[:-2])), segments[-1]

    # --------------------------------------------------------------------------
    # Path-addressed operations
    # --------------------------------------------------------------------------
    async def write_to_new_doc(
        self,
        path: str,
        data,
        merge_defaults: bool = False,
        autobatcher: Optional[Autobatcher] = None,
    ) -> DocumentHandle:
        """Write ``data`` to a new document in the collection at ``path``."""
        return await self._instance_for_collection(path).write_to_new_doc(
            data, merge_defaults=merge_defaults, autobatcher=autobatcher
        )

    async def write_to_path(
        self,
        path: str,
        data,
        merge_defaults: bool = False,
        merge_existing: bool = False,
        transaction=None,
        autobatcher: Optional[Autobatcher] = None,
    ) -> DocumentHandle:
        """Write ``data`` to the document at ``path``; see ``write_to_id``."""
        instance, doc_id = self._instance_and_id_for_document(path)
        return await instance.write_to_id(
            doc_id,
            data,
            merge_defaults=merge_defaults,
            merge_existing=merge_existing,
            transaction=transaction,
            autobatcher=autobatcher,
        )

    async def get_by_path(self, path: str, transaction=None) -> Optional[SanitizedDocument]:
        instance, doc_id = self._instance_and_id_for_document(path)
        return await instance.get_by_id(doc_id, transaction=transaction)

    async def get_by_query_in_instance(
        self,
        path: str,
        predicates: Optional[Iterable[Predicate]] = None,
    ) -> List[SanitizedDocument]:
        return await self._instance_for_collection(path).get_by_query(predicates)

    async def delete_by_path(
        self,
        path: str,
        transaction=None,
        autobatcher: Optional[Autobatcher] = None,
    ) -> None:
        instance, doc_id = self._instance_and_id_for_document(path)
        await instance.delete_by_id(doc_id, transaction=transaction, autobatcher=autobatcher)

    # --------------------------------------------------------------------------
    # Path-addressed listeners
    # --------------------------------------------------------------------------
    def add_listener_by_path(self, name: str, path: str, callback: Callable) -> None:
        instance, doc_id = self._instance_and_id_for_document(path)
        self.listeners.add_document(name, *instance._document_listener(doc_id, callback))

    def add_listener_by_query_in_instance(
        self,
        name: str,
        path: str,
        predicates: Optional[Iterable[Predicate]],
        callback: Callable,
    ) -> None:
        instance = self._instance_for_collection(path)
        self.listeners.add_query(name, *instance._query_listener(predicates, callback))

    def remove_listener(self, name: str) -> None:
        self.listeners.remove(name)

    def remove_all_listeners(self) -> None:
        self.listeners.remove_all()

    def __repr__(self) -> str:
        return f"Submodel({self.schema.key!r})"


def _segments(path) -> List[str]:
    if not isinstance(path, str):
        return []
    segments = path.strip("/").split("/")
    return [] if any(not segment for segment in segments) else segments
