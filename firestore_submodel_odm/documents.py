from typing import Any, Dict, Optional

from .pydantic_compat import BaseModel, Field


class DocumentHandle(BaseModel):
    """
    Reference to a document written through a collection.

    ``children`` maps every subcollection registered on the collection's
    schema to a :class:`~firestore_submodel_odm.submodel.SubmodelInstance`
    bound to this document.
    """

    id: str
    path: str
    ref: Any = None
    # values are SubmodelInstance objects
    children: Dict[str, Any] = Field(default_factory=dict)

    def child(self, name: str):
        """Return the bound subcollection called ``name``."""
        try:
            return self.children[name]
        except KeyError:
            raise KeyError(
                f"Document '{self.path}' has no registered subcollection '{name}'."
            ) from None


class SanitizedDocument(DocumentHandle):
    """
    Document read back from Firestore, restricted to the declared properties.
    """

    data: Dict[str, Any] = Field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data)
