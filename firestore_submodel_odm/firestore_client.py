import os
import logging
from typing import Optional

from google.cloud.firestore_v1 import AsyncClient, Client

logger = logging.getLogger(__name__)


class FirestoreDB:
    """
    Connection holder shared by every collection declared with this package.

    Two Google clients live behind one configuration:

    * ``client`` – a :class:`google.cloud.firestore_v1.AsyncClient` used for
      reads, writes, queries, batches and transactions.
    * ``listener_client`` – a synchronous :class:`google.cloud.firestore_v1.Client`
      created on first use.  Realtime ``on_snapshot`` watches are only exposed by
      the synchronous SDK, so listeners are opened through it.

    Both clients point at the same project/database and follow the same
    emulator switch.
    """

    def __init__(
        self,
        project_id: str,
        database: Optional[str] = None,
        credentials=None,
        emulator_host: Optional[str] = None,
    ):
        """
        Parameters
        ----------
        project_id :
            Google Cloud project identifier (e.g. ``"my-gcp-project"``).
        database :
            Optional Firestore **database ID** (defaults to the default database).
        credentials :
            Explicit credentials object; if *None*, the Google SDK default
            credentials chain is used.
        emulator_host :
            Hostname (and port) of a running **Firestore emulator** such as
            ``"localhost:8080"``.
        """
        self.project_id = project_id
        self.database = database
        self.credentials = credentials
        self._emulator_host = emulator_host
        self._listener_client: Optional[Client] = None

        self.client: AsyncClient = self._init_client()

    # --------------------------------------------------------------------- #
    # Internal helpers                                                      #
    # --------------------------------------------------------------------- #

    def _export_emulator_host(self) -> None:
        if self._emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = self._emulator_host
        else:
            os.environ.pop("FIRESTORE_EMULATOR_HOST", None)

    def _init_client(self) -> AsyncClient:
        """
        Instantiate the :class:`AsyncClient`.

        ``FIRESTORE_EMULATOR_HOST`` is exported when an emulator host is
        configured and removed otherwise, so the Google libraries route traffic
        to the right backend.  Any cached listener client is dropped so that the
        next listener reconnects with the same settings.
        """
        self._export_emulator_host()
        self._listener_client = None
        if self._emulator_host:
            logger.info(f"Using Firestore emulator on {self._emulator_host}")
        return AsyncClient(
            project=self.project_id,
            database=self.database,
            credentials=self.credentials,
        )

    # --------------------------------------------------------------------- #
    # Public API                                                            #
    # --------------------------------------------------------------------- #

    @property
    def listener_client(self) -> Client:
        """Synchronous client used to open realtime watches."""
        if self._listener_client is None:
            self._export_emulator_host()
            self._listener_client = Client(
                project=self.project_id,
                database=self.database,
                credentials=self.credentials,
            )
            logger.debug(f"Created listener client for project {self.project_id}")
        return self._listener_client

    @listener_client.setter
    def listener_client(self, value: Client) -> None:
        self._listener_client = value

    def use_emulator(self, host: str = "localhost:8080"):
        """Point both clients at a **local emulator** listening on ``host``."""
        self._emulator_host = host
        self.client = self._init_client()
        logger.info(f"Emulator enabled on {host}")

    def clear_emulator(self):
        """Reconnect both clients to the **production** Firestore endpoint."""
        self._emulator_host = None
        self.client = self._init_client()
        logger.info("Emulator disabled, using real Firestore.")

    def mock_firestore_for_tests(self):
        """
        Replace both clients with :class:`unittest.mock.MagicMock` objects so
        unit tests never touch the network.
        """
        from unittest.mock import MagicMock

        self.client = MagicMock()
        self._listener_client = MagicMock()
        logger.info("Firestore clients replaced with MagicMock for unit tests.")
