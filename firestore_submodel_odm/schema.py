import logging
from typing import Any, Dict, Iterator, List, Optional

import pydantic

from .errors import ConfigurationError
from .firestore_client import FirestoreDB
from .pydantic_compat import BaseModel, Field, validation_error_messages
from .sanitizer import Sanitizer

logger = logging.getLogger(__name__)


class CollectionDeclaration(BaseModel):
    """Settings a collection is declared with."""

    name: str
    properties: List[str]
    defaults: Dict[str, Any] = Field(default_factory=dict)


def build_declaration(name, properties, defaults=None) -> CollectionDeclaration:
    """Validate raw declaration arguments, raising :class:`ConfigurationError`."""
    if not name:
        raise ConfigurationError("`name` must be specified when declaring a collection.")
    if not properties or isinstance(properties, str):
        raise ConfigurationError(
            f"`properties` must be a non-empty list of names when declaring '{name}'."
        )
    try:
        declaration = CollectionDeclaration(
            name=name,
            properties=list(properties),
            defaults=dict(defaults or {}),
        )
    except pydantic.ValidationError as exc:
        raise ConfigurationError(
            f"Invalid declaration for '{name}': {validation_error_messages(exc)}"
        ) from exc
    if "/" in declaration.name:
        raise ConfigurationError(f"Collection name '{declaration.name}' must not contain '/'.")
    return declaration


class CollectionSchema:
    """
    One node of a :class:`SchemaGraph`.

    Children are stored by name only; :meth:`SchemaGraph.children_of`
    resolves them to their nodes.
    """

    def __init__(self, declaration: CollectionDeclaration, graph: "SchemaGraph", parent_key: Optional[str] = None):
        self.name = declaration.name
        self.sanitizer = Sanitizer(declaration.properties, declaration.defaults)
        self.graph = graph
        self.parent_key = parent_key
        self.key = f"{parent_key}/{self.name}" if parent_key else self.name
        self.child_names: List[str] = []

    @property
    def properties(self):
        return self.sanitizer.properties

    @property
    def defaults(self) -> Dict[str, Any]:
        return self.sanitizer.defaults

    @property
    def db(self) -> Optional[FirestoreDB]:
        return self.graph.db

    def __repr__(self) -> str:
        return f"CollectionSchema(key={self.key!r}, children={self.child_names!r})"


class SchemaGraph:
    """
    Arena holding a root collection schema and every subcollection declared
    beneath it, keyed by their slash-joined names (``"profiles/groups"``).

    The injected :class:`FirestoreDB` is shared by the whole tree.
    """

    def __init__(self):
        self._nodes: Dict[str, CollectionSchema] = {}
        self._db: Optional[FirestoreDB] = None
        self.root: Optional[CollectionSchema] = None

    # --------------------------------------------------------------------------
    # Database injection
    # --------------------------------------------------------------------------
    @property
    def db(self) -> Optional[FirestoreDB]:
        return self._db

    def initialize_db(self, db: FirestoreDB) -> None:
        if self._db is not None and self._db is not db:
            logger.warning(f"Replacing the database injected into '{self.root.key}'")
        self._db = db

    # --------------------------------------------------------------------------
    # Declaration
    # --------------------------------------------------------------------------
    def declare(
        self,
        declaration: CollectionDeclaration,
        parent: Optional[CollectionSchema] = None,
    ) -> CollectionSchema:
        if parent is None:
            if self.root is not None:
                raise ConfigurationError("A schema graph holds exactly one root collection.")
            schema = CollectionSchema(declaration, self)
            self.root = schema
        else:
            if parent.graph is not self:
                raise ConfigurationError(f"'{parent.key}' belongs to another schema graph.")
            if declaration.name in parent.child_names:
                raise ConfigurationError(
                    f"'{parent.key}' already has a subcollection named '{declaration.name}'."
                )
            schema = CollectionSchema(declaration, self, parent_key=parent.key)
            parent.child_names.append(schema.name)
        self._nodes[schema.key] = schema
        logger.debug(f"Declared collection schema '{schema.key}'")
        return schema

    # --------------------------------------------------------------------------
    # Lookup
    # --------------------------------------------------------------------------
    def get(self, key: str) -> CollectionSchema:
        try:
            return self._nodes[key]
        except KeyError:
            raise KeyError(f"No collection schema registered as '{key}'.") from None

    def children_of(self, schema: CollectionSchema) -> Dict[str, CollectionSchema]:
        return {name: self._nodes[f"{schema.key}/{name}"] for name in schema.child_names}

    def __iter__(self) -> Iterator[CollectionSchema]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)
