from typing import Dict, Iterable, Optional

from .firestore_client import FirestoreDB
from .operations import DocumentCollectionOperations, RootCollectionPath
from .schema import CollectionSchema, SchemaGraph, build_declaration


class Model(DocumentCollectionOperations):
    """
    Top-level Firestore collection with a fixed set of properties.

    Example
    -------
    >>> Profile = Model(
    ...     name="profiles",
    ...     properties=["displayName", "email"],
    ...     defaults={"email": "n/a"},
    ... )
    >>> Profile.initialize_db(db)
    >>> handle = await Profile.write_to_new_doc({"displayName": "john"}, merge_defaults=True)
    """

    def __init__(self, name: str, properties: Iterable[str], defaults: Optional[dict] = None):
        declaration = build_declaration(name, properties, defaults)
        schema = SchemaGraph().declare(declaration)
        super().__init__(schema, RootCollectionPath(schema.name))

    def initialize_db(self, db: FirestoreDB) -> None:
        """Inject the database used by this collection and its subcollections."""
        self.schema.graph.initialize_db(db)

    @property
    def subcollections(self) -> Dict[str, CollectionSchema]:
        return self.schema.graph.children_of(self.schema)
