import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import DuplicateListenerError

logger = logging.getLogger(__name__)


@dataclass
class ListenerHandle:
    name: str
    watch: Any

    def unsubscribe(self) -> None:
        self.watch.unsubscribe()


class ListenerRegistry:
    """
    Named realtime subscriptions owned by one collection.

    Snapshots are delivered by the Firestore SDK on its own watch thread, one
    callback at a time per watch.  The name map is guarded by a lock: a name
    is reserved before the watch is opened, so when two registrations race for
    the same name the later one raises :class:`DuplicateListenerError`.
    """

    def __init__(self, owner: str = ""):
        self.owner = owner
        # A name maps to its handle, or to the claim token of the
        # registration still opening its watch.
        self._handles: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    @property
    def names(self) -> List[str]:
        with self._lock:
            return list(self._handles)

    # --------------------------------------------------------------------------
    # Registration
    # --------------------------------------------------------------------------
    def add_document(self, name: str, document_ref, on_change: Callable[[Any], None]) -> ListenerHandle:
        """
        Watch one document; ``on_change`` receives its snapshot, or ``None``
        once the document no longer exists.
        """
        def handle_snapshot(docs, changes, read_time):
            snapshot = docs[0] if docs else None
            if snapshot is not None and not snapshot.exists:
                snapshot = None
            self._dispatch(name, on_change, snapshot)

        return self._subscribe(name, lambda: document_ref.on_snapshot(handle_snapshot))

    def add_query(self, name: str, query, on_change: Callable[[List[Any]], None]) -> ListenerHandle:
        """Watch a query; ``on_change`` receives the full ordered result set."""
        def handle_snapshot(docs, changes, read_time):
            self._dispatch(name, on_change, list(docs))

        return self._subscribe(name, lambda: query.on_snapshot(handle_snapshot))

    def _subscribe(self, name: str, open_watch: Callable[[], Any]) -> ListenerHandle:
        claim = object()
        with self._lock:
            if name in self._handles:
                raise DuplicateListenerError(name, self.owner)
            self._handles[name] = claim

        try:
            watch = open_watch()
        except Exception:
            with self._lock:
                if self._handles.get(name) is claim:
                    del self._handles[name]
            raise

        handle = ListenerHandle(name, watch)
        with self._lock:
            # remove() may have released the claim, and another registration
            # may have taken the name, while the watch opened
            kept = self._handles.get(name) is claim
            if kept:
                self._handles[name] = handle
        if not kept:
            handle.unsubscribe()
            logger.debug(f"Listener '{name}' on {self.owner} was removed while opening")
            return handle
        logger.debug(f"Listener '{name}' added on {self.owner}")
        return handle

    def _dispatch(self, name: str, on_change: Callable, payload: Any) -> None:
        try:
            on_change(payload)
        except Exception:
            # Raising here would kill the SDK watch thread.
            logger.exception(f"Listener '{name}' on {self.owner} raised while handling a snapshot")

    # --------------------------------------------------------------------------
    # Removal
    # --------------------------------------------------------------------------
    def remove(self, name: str) -> None:
        with self._lock:
            handle = self._handles.pop(name, None)
        if isinstance(handle, ListenerHandle):
            handle.unsubscribe()
            logger.debug(f"Listener '{name}' removed from {self.owner}")

    def remove_all(self) -> None:
        with self._lock:
            handles = [handle for handle in self._handles.values() if isinstance(handle, ListenerHandle)]
            self._handles.clear()
        for handle in handles:
            handle.unsubscribe()
        if handles:
            logger.debug(f"Removed {len(handles)} listeners from {self.owner}")


class ListenerSubscription:
    """
    Disposer for a listener tied to the lifetime of its consumer.

    Calling it (or leaving its ``with`` block) removes the listener; doing so
    more than once is harmless.
    """

    def __init__(self, registry: ListenerRegistry, name: str):
        self._registry = registry
        self.name = name
        self._disposed = False

    @property
    def active(self) -> bool:
        return not self._disposed and self.name in self._registry

    def dispose(self) -> None:
        if not self._disposed:
            self._disposed = True
            self._registry.remove(self.name)

    __call__ = dispose

    def __enter__(self) -> "ListenerSubscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class LiveData(ListenerSubscription):
    """
    Scoped listener that mirrors the latest delivered value.

    ``initial_fetch_completed`` turns true with the first snapshot, including
    when that snapshot reports a missing document.
    """

    def __init__(
        self,
        registry: ListenerRegistry,
        name: str,
        on_change: Optional[Callable[[Any], None]] = None,
        initial_value: Any = None,
    ):
        super().__init__(registry, name)
        self._on_change = on_change
        self._value = initial_value
        self._value_lock = threading.Lock()
        self._fetched = threading.Event()
        self._waiters: List[Tuple[asyncio.AbstractEventLoop, asyncio.Future]] = []

    @property
    def value(self) -> Any:
        with self._value_lock:
            return self._value

    @property
    def initial_fetch_completed(self) -> bool:
        return self._fetched.is_set()

    def current(self) -> Tuple[Any, bool]:
        with self._value_lock:
            return self._value, self._fetched.is_set()

    def deliver(self, value: Any) -> None:
        with self._value_lock:
            self._value = value
            self._fetched.set()
            waiters, self._waiters = self._waiters, []
        _release(waiters, True)
        if self._on_change is not None:
            self._on_change(value)

    def dispose(self) -> None:
        super().dispose()
        with self._value_lock:
            waiters, self._waiters = self._waiters, []
        _release(waiters, self._fetched.is_set())

    def wait_for_initial_fetch(self, timeout: Optional[float] = None) -> bool:
        return self._fetched.wait(timeout)

    async def initial_fetch(self, timeout: Optional[float] = None) -> bool:
        """
        Await the first snapshot without blocking the event loop.

        Returns ``False`` when ``timeout`` expires or the listener is disposed
        before anything was delivered.
        """
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        entry = (loop, waiter)
        with self._value_lock:
            if self._fetched.is_set():
                return True
            if self._disposed:
                return False
            self._waiters.append(entry)
        try:
            return await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            return False
        finally:
            with self._value_lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)


def _release(waiters, result: bool) -> None:
    """Resolve futures waiting on a :class:`LiveData` from any thread."""
    for loop, waiter in waiters:
        if not loop.is_closed():
            loop.call_soon_threadsafe(_resolve, waiter, result)


def _resolve(waiter: asyncio.Future, result: bool) -> None:
    if not waiter.done():
        waiter.set_result(result)
