from google.api_core.exceptions import GoogleAPICallError

# Failures raised by the Firestore transport are propagated untouched; this
# alias only gives callers a name to catch them by.
StoreError = GoogleAPICallError


class FirestoreODMError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(FirestoreODMError, ValueError):
    """A collection was declared with missing or inconsistent settings."""


class DuplicateListenerError(FirestoreODMError, KeyError):
    """A listener name is already active in the registry it was added to."""

    def __init__(self, name: str, owner: str = ""):
        self.name = name
        self.owner = owner
        where = f" on '{owner}'" if owner else ""
        super().__init__(f"A listener named '{name}' is already registered{where}.")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class PathMismatchError(FirestoreODMError, ValueError):
    """A path-addressed operation received a path outside its collection."""

    def __init__(self, collection_name: str, path: str):
        self.collection_name = collection_name
        self.path = path
        super().__init__(
            "The path given must address the submodel's collection.\n"
            f"Path given: {path}\n"
            f"Subcollection name is: {collection_name}"
        )
