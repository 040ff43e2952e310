import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .enums import WriteMode
from .errors import ConfigurationError
from .firestore_client import FirestoreDB

logger = logging.getLogger(__name__)

# Firestore accepts at most this many writes in one batch commit.
MAX_BATCH_OPERATIONS = 500


@dataclass
class PendingWrite:
    reference: Any
    mode: WriteMode
    payload: Dict[str, Any] = field(default_factory=dict)


class Autobatcher:
    """
    Coalesces many logical writes into as few batch commits as possible.

    Writes are queued in order; once ``batch_limit`` writes are waiting they
    are committed together and a new batch starts.  Whatever remains is
    committed by :meth:`flush`, which callers must await before relying on the
    writes being durable.

    Example
    -------
    >>> async with Autobatcher(db) as batcher:
    ...     for profile in profiles:
    ...         await Profile.write_to_id(profile["uid"], profile, autobatcher=batcher)
    """

    def __init__(self, db: Optional[FirestoreDB] = None, batch_limit: int = MAX_BATCH_OPERATIONS):
        if not 1 <= batch_limit <= MAX_BATCH_OPERATIONS:
            raise ConfigurationError(
                f"batch_limit must be between 1 and {MAX_BATCH_OPERATIONS}, got {batch_limit}."
            )
        self._db = db
        self.batch_limit = batch_limit
        self._queue: List[PendingWrite] = []
        self.committed_batches = 0

    # --------------------------------------------------------------------------
    # Context manager
    # --------------------------------------------------------------------------
    async def __aenter__(self) -> "Autobatcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.flush()
        elif self._queue:
            logger.warning(
                f"Autobatcher: leaving {len(self._queue)} queued writes uncommitted after error"
            )

    # --------------------------------------------------------------------------
    # Queueing
    # --------------------------------------------------------------------------
    @property
    def pending(self) -> int:
        return len(self._queue)

    def bind(self, db: FirestoreDB) -> None:
        """
        Attach the database used to resolve paths and open batches.

        A batcher commits through a single client, so binding it to a second
        database raises :class:`ConfigurationError`.
        """
        if self._db is None:
            self._db = db
        elif db is not self._db:
            raise ConfigurationError(
                f"Autobatcher is bound to project '{self._db.project_id}'; "
                f"it cannot also queue writes for project '{db.project_id}'."
            )

    async def enqueue_set(self, target: Union[str, Any], fields: Dict[str, Any], merge_existing: bool = False) -> None:
        mode = WriteMode.MERGE if merge_existing else WriteMode.OVERWRITE
        await self._enqueue(PendingWrite(self._resolve(target), mode, dict(fields)))

    async def enqueue_create(self, target: Union[str, Any], fields: Dict[str, Any]) -> None:
        await self._enqueue(PendingWrite(self._resolve(target), WriteMode.CREATE, dict(fields)))

    async def enqueue_delete(self, target: Union[str, Any]) -> None:
        await self._enqueue(PendingWrite(self._resolve(target), WriteMode.DELETE))

    async def _enqueue(self, write: PendingWrite) -> None:
        self._queue.append(write)
        if len(self._queue) >= self.batch_limit:
            chunk, self._queue = self._queue[: self.batch_limit], self._queue[self.batch_limit:]
            await self._commit(chunk)

    # --------------------------------------------------------------------------
    # Committing
    # --------------------------------------------------------------------------
    async def flush(self) -> None:
        """
        Commit every queued write, ``batch_limit`` at a time, in order.

        The queue is detached before the first commit starts, so writes queued
        while a flush is running belong to the next flush.  A failing commit
        is not retried and its error is raised; chunks committed before it
        stay committed and chunks after it stay unsent.
        """
        queued, self._queue = self._queue, []
        for start in range(0, len(queued), self.batch_limit):
            await self._commit(queued[start:start + self.batch_limit])

    async def _commit(self, chunk: List[PendingWrite]) -> None:
        if not chunk:
            return
        batch = self._client().batch()
        for write in chunk:
            if write.mode == WriteMode.CREATE:
                batch.create(write.reference, write.payload)
            elif write.mode == WriteMode.OVERWRITE:
                batch.set(write.reference, write.payload)
            elif write.mode == WriteMode.MERGE:
                batch.set(write.reference, write.payload, merge=True)
            elif write.mode == WriteMode.DELETE:
                batch.delete(write.reference)
        logger.debug(f"Autobatcher: committing batch of {len(chunk)} writes")
        await batch.commit()
        self.committed_batches += 1

    # --------------------------------------------------------------------------
    # Helpers
    # --------------------------------------------------------------------------
    def _client(self):
        if not self._db:
            raise RuntimeError("Database must be initialized before using the autobatcher.")
        return self._db.client

    def _resolve(self, target: Union[str, Any]):
        if isinstance(target, str):
            return self._client().document(target)
        return target
