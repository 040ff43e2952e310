# firestore_submodel_odm/__init__.py
from typing import Iterable, Union
from .autobatcher import Autobatcher, MAX_BATCH_OPERATIONS
from .documents import DocumentHandle, SanitizedDocument
from .enums import FirestoreOperators, OrderByDirection, WriteMode
from .errors import (
    ConfigurationError,
    DuplicateListenerError,
    FirestoreODMError,
    PathMismatchError,
    StoreError,
)
from .firestore_client import FirestoreDB
from .listeners import ListenerRegistry, ListenerSubscription, LiveData
from .model import Model
from .query_constraints import (
    FieldRef,
    document_id,
    end_at,
    end_before,
    field,
    limit,
    limit_to_last,
    order_by,
    start_after,
    start_at,
    where,
)
from .sanitizer import Sanitizer
from .submodel import Submodel, SubmodelInstance


def init_firestore_models(database: FirestoreDB, models: Iterable[Union[Model, Submodel]]):
    for model in models:
        model.initialize_db(database)

__all__ = [
    "Autobatcher",
    "MAX_BATCH_OPERATIONS",
    "DocumentHandle",
    "SanitizedDocument",
    "FirestoreOperators",
    "OrderByDirection",
    "WriteMode",
    "ConfigurationError",
    "DuplicateListenerError",
    "FirestoreODMError",
    "PathMismatchError",
    "StoreError",
    "FirestoreDB",
    "ListenerRegistry",
    "ListenerSubscription",
    "LiveData",
    "Model",
    "FieldRef",
    "document_id",
    "end_at",
    "end_before",
    "field",
    "limit",
    "limit_to_last",
    "order_by",
    "start_after",
    "start_at",
    "where",
    "Sanitizer",
    "Submodel",
    "SubmodelInstance",
    "init_firestore_models",
]
