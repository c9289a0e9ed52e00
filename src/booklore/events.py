# ABOUTME: Fire-and-forget notifications about books (added, updated, duplicate detected).
# ABOUTME: A failing sink is logged and never fails the operation that published the event.

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from booklore.models import BookRecord

logger = logging.getLogger(__name__)


class Topic(Enum):
    BOOK_ADD = "BOOK_ADD"
    BOOK_UPDATE = "BOOK_UPDATE"
    DUPLICATE_FILE = "DUPLICATE_FILE"


class EventSink(Protocol):
    """Transport for notifications (websocket, queue, log...)."""

    def publish(self, topic: Topic, payload: dict[str, Any]) -> None: ...


class LogEventSink:
    """Default sink: writes every event to the log."""

    def publish(self, topic: Topic, payload: dict[str, Any]) -> None:
        logger.info("%s %s", topic.value, payload)


class CollectingEventSink:
    """Keeps published events in memory, in order."""

    def __init__(self) -> None:
        self.events: list[tuple[Topic, dict[str, Any]]] = []

    def publish(self, topic: Topic, payload: dict[str, Any]) -> None:
        self.events.append((topic, payload))

    def of(self, topic: Topic) -> list[dict[str, Any]]:
        return [payload for event_topic, payload in self.events if event_topic == topic]


def book_payload(book: BookRecord) -> dict[str, Any]:
    """Summarize a book for a notification."""
    return {
        "id": book.id,
        "libraryId": book.library_id,
        "libraryPathId": book.library_path_id,
        "fileSubPath": book.file_sub_path,
        "fileName": book.file_name,
        "bookType": book.book_type.value,
        "title": book.metadata.title,
        "authors": list(book.metadata.authors),
        "metadataMatchScore": book.metadata_match_score,
    }


class NotificationService:
    """Publishes events through a sink, isolating callers from sink failures."""

    def __init__(self, sink: EventSink | None = None) -> None:
        self._sink = sink or LogEventSink()

    def send_message(self, topic: Topic, payload: dict[str, Any]) -> None:
        try:
            self._sink.publish(topic, payload)
        except Exception:
            logger.exception("Failed to publish %s event", topic.value)

    def broadcast_book_add(self, book: BookRecord) -> None:
        self.send_message(Topic.BOOK_ADD, book_payload(book))

    def broadcast_book_update(self, book: BookRecord) -> None:
        self.send_message(Topic.BOOK_UPDATE, book_payload(book))

    def notify_duplicate(self, library_id: int, library_name: str, duplicate: Any) -> None:
        """Report a discovered file that matched an existing book.

        Args:
            duplicate: A DuplicateFileInfo.
        """
        payload = {
            "libraryId": library_id,
            "libraryName": library_name,
            **{_camel(k): v for k, v in asdict(duplicate).items()},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        logger.info("Duplicate file detected: %s", payload)
        self.send_message(Topic.DUPLICATE_FILE, payload)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)
