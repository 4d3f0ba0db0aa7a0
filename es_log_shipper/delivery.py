"""Bulk delivery: formats cached log messages into one bulk request and submits it."""

import datetime
import logging
import uuid
from typing import Callable, Optional

from es_log_shipper.client import IndexClient
from es_log_shipper.errors import NotOpenError
from es_log_shipper.index_namer import IndexNamer
from es_log_shipper.models import LogMessage
from es_log_shipper.provisioner import IndexProvisioner

logger = logging.getLogger(__name__)


def build_bulk_operations(
    index: str, records: list[LogMessage], doc_type: Optional[str] = None
) -> list[dict]:
    """Interleave one index directive with each record's document, in order.

    Every directive gets a freshly generated id so retried batches never
    overwrite unrelated documents.
    """
    operations: list[dict] = []
    for record in records:
        directive = {"_index": index, "_id": uuid.uuid4().hex}
        if doc_type is not None:
            directive["_type"] = doc_type
        operations.append({"index": directive})
        operations.append(record.to_document())
    return operations


class BulkDelivery:
    def __init__(
        self,
        namer: IndexNamer,
        provisioner: Optional[IndexProvisioner],
        client: Optional[IndexClient],
        doc_type: Optional[str] = None,
        clock: Callable[[], datetime.datetime] = None,
    ):
        self._namer = namer
        self._provisioner = provisioner
        self._client = client
        self._doc_type = doc_type
        self._clock = clock or (lambda: datetime.datetime.now(datetime.timezone.utc))

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def deliver(self, records: list[LogMessage]) -> Optional[dict]:
        """Write *records* to the current index in a single bulk call.

        Returns the store's bulk response untouched (per-item failures
        included), or None when there was nothing to write.
        """
        if not records and not self.is_open:
            return None
        if not self.is_open:
            raise NotOpenError(
                f"Cannot deliver {len(records)} records: logger is not open"
            )

        index = self._namer.current_index_name(self._clock())
        self._provisioner.ensure_index(index, force=False)

        if not records:
            return None

        operations = build_bulk_operations(index, records, self._doc_type)
        result = self._client.bulk_write(operations)
        logger.debug("Wrote %d records to %s", len(records), index)
        return result
