"""Index provisioner: makes sure the target index exists before writes."""

import logging
import threading
from typing import Optional

from es_log_shipper.client import IndexClient
from es_log_shipper.errors import IndexAlreadyExistsError
from es_log_shipper.schema import SHARD_COUNT

logger = logging.getLogger(__name__)


class IndexProvisioner:
    """Creates the current index on demand and remembers the last one checked.

    Only a forced call or a change of index name (e.g. a day rollover) goes
    to the remote store; every other call returns immediately.
    """

    def __init__(self, client: IndexClient, mappings: dict, shards: int = SHARD_COUNT):
        self._client = client
        self._mappings = mappings
        self._shards = shards
        self._last_resolved: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def last_resolved(self) -> Optional[str]:
        return self._last_resolved

    def ensure_index(self, name: str, force: bool = False) -> None:
        with self._lock:
            if not force and name == self._last_resolved:
                return
            self._last_resolved = name

        if self._client.index_exists(name):
            logger.debug("Index %s already exists", name)
            return

        try:
            self._client.create_index(name, self._shards, self._mappings)
        except IndexAlreadyExistsError:
            logger.debug("Index %s was created concurrently", name)

    def reset(self):
        with self._lock:
            self._last_resolved = None
