"""No-op database backend, for dry runs and tests."""

import logging

from .base import Db

logger = logging.getLogger(__name__)


class DummyDb(Db):
    """In-memory database whose write() discards everything."""

    def write(self) -> None:
        logger.debug(
            f"Dummy database: discarding {len(self.storage.equivalences)} equivalence(s) "
            f"and {len(self.storage.migrations)} migration(s)"
        )
