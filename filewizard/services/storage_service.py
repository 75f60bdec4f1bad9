import logging
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from filewizard.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class StoredResult:
    object_name: str
    filename: str
    media_type: str
    content: bytes
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class ResultStore:
    """In-memory home for conversion results until they are downloaded or reset.

    Entries expire after ``ttl_seconds`` and the oldest ones are evicted once
    ``max_items`` is exceeded.
    """

    def __init__(self, ttl_seconds: int = 3600, max_items: int = 256):
        self.ttl_seconds = ttl_seconds
        self.max_items = max_items
        self._items: "OrderedDict[str, StoredResult]" = OrderedDict()
        self._lock = threading.Lock()

    def _purge_expired(self, now: float):
        expired = [
            name for name, item in self._items.items()
            if now - item.created_at > self.ttl_seconds
        ]
        for name in expired:
            del self._items[name]
        if expired:
            logger.info("Expired %d stored results", len(expired))

    def upload_file(self, filename: str, file_content: bytes, media_type: str, metadata: dict = None) -> str:
        object_name = uuid.uuid4().hex
        result = StoredResult(
            object_name=object_name,
            filename=filename,
            media_type=media_type,
            content=file_content,
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._purge_expired(result.created_at)
            self._items[object_name] = result
            while len(self._items) > self.max_items:
                evicted, _ = self._items.popitem(last=False)
                logger.warning("Result store full, evicted %s", evicted)
        return object_name

    def download_file(self, object_name: str) -> Optional[StoredResult]:
        with self._lock:
            self._purge_expired(time.time())
            return self._items.get(object_name)

    def delete_file(self, object_name: str) -> bool:
        with self._lock:
            return self._items.pop(object_name, None) is not None

    def clear(self):
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def get_download_url(self, object_name: str) -> str:
        return f"{settings.API_V1_STR}/files/{object_name}"


storage_service = ResultStore(
    ttl_seconds=settings.RESULT_TTL_SECONDS,
    max_items=settings.RESULT_MAX_ITEMS,
)
