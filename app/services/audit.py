"""
Audit event publishing.

The gateway hands finished audit records to an ``AuditPublisher``; the
publisher forwards them to a sink (Kafka in production) together with the
tenant as a message header. Publishing is fire-and-forget: it is only called
after the storage mutation succeeded, and its failures are logged, never
raised.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from functools import lru_cache

from kafka import KafkaProducer
from kafka.errors import KafkaError

from app.config import get_settings
from app.schemas.audit import AuditRecord

logger = logging.getLogger(__name__)
settings = get_settings()

TENANT_HEADER = "tenantId"


class AuditSink(ABC):
    """Outbound channel for audit records."""

    @abstractmethod
    def send(self, record: AuditRecord, headers: dict[str, str]) -> None:
        """Dispatch a record without waiting for delivery."""

    def close(self) -> None:
        """Flush and release resources."""


def _api_version(value: str) -> tuple[int, ...]:
    return tuple(int(part) for part in value.split("."))


class KafkaAuditSink(AuditSink):
    """
    Sends audit records to a Kafka topic as JSON.

    ``KafkaProducer.send`` is asynchronous; delivery failures are reported
    to an errback and logged. The producer is created on first use with a
    fixed protocol version, so construction never waits on the broker. A
    failed creation is not retried until ``retry_backoff`` seconds have
    passed; records published in the meantime are dropped with a warning.
    """

    def __init__(
        self,
        topic: str,
        bootstrap_servers: str | None = None,
        producer: KafkaProducer | None = None,
        producer_factory: Callable[[], KafkaProducer] | None = None,
        retry_backoff: float | None = None,
    ):
        self.topic = topic
        self.bootstrap_servers = bootstrap_servers or settings.KAFKA_BOOTSTRAP_SERVERS
        self.retry_backoff = (
            settings.KAFKA_PRODUCER_RETRY_BACKOFF if retry_backoff is None else retry_backoff
        )
        self._producer_factory = producer_factory or self._build_producer
        self._producer = producer
        self._next_attempt = 0.0
        self._lock = threading.Lock()

    def _build_producer(self) -> KafkaProducer:
        return KafkaProducer(
            bootstrap_servers=self.bootstrap_servers.split(","),
            value_serializer=lambda record: record.to_json_bytes(),
            max_block_ms=settings.KAFKA_MAX_BLOCK_MS,
            api_version=_api_version(settings.KAFKA_API_VERSION),
        )

    def _get_producer(self) -> KafkaProducer | None:
        """
        Return the producer, creating it if this thread wins the attempt.

        The attempt is reserved under the lock and the producer is built
        outside it, so concurrent senders never queue behind a creation.
        """
        if self._producer is not None:
            return self._producer

        with self._lock:
            if self._producer is not None:
                return self._producer
            now = time.monotonic()
            if now < self._next_attempt:
                return None
            self._next_attempt = now + self.retry_backoff

        try:
            producer = self._producer_factory()
        except KafkaError as e:
            logger.error(
                "Failed to create Kafka producer for %s, next attempt in %.0fs: %s",
                self.bootstrap_servers,
                self.retry_backoff,
                e,
            )
            return None

        with self._lock:
            self._producer = producer
        return producer

    def send(self, record: AuditRecord, headers: dict[str, str]) -> None:
        producer = self._get_producer()
        if producer is None:
            logger.warning(
                "Kafka producer unavailable, dropping %s audit event for %s",
                record.action.value,
                record.metadata.get("filename"),
            )
            return

        future = producer.send(
            self.topic,
            value=record,
            headers=[(name, value.encode("utf-8")) for name, value in headers.items()],
        )
        future.add_errback(self._on_send_error, record)

    @staticmethod
    def _on_send_error(record: AuditRecord, exc: BaseException) -> None:
        logger.error(
            "Audit delivery failed for %s %s: %s",
            record.action.value,
            record.metadata.get("filename"),
            exc,
        )

    def close(self) -> None:
        if self._producer is not None:
            self._producer.flush()
            self._producer.close()


class AuditPublisher:
    """
    Publishes audit records, tagging each with the tenant.

    With no sink configured, publishing is a no-op.
    """

    def __init__(self, sink: AuditSink | None = None):
        self.sink = sink

    @property
    def enabled(self) -> bool:
        return self.sink is not None

    def publish(self, record: AuditRecord, tenant_id: str | None) -> None:
        """Publish a record. Never raises."""
        if self.sink is None:
            logger.debug("Audit disabled, dropping %s event", record.action.value)
            return

        headers = {TENANT_HEADER: tenant_id} if tenant_id else {}

        try:
            logger.info("Publish %s audit event", record.action.value)
            self.sink.send(record, headers)
        except Exception:
            logger.exception(
                "Failed to publish %s audit event for %s",
                record.action.value,
                record.metadata.get("filename"),
            )

    def close(self) -> None:
        if self.sink is not None:
            self.sink.close()


@lru_cache
def get_audit_publisher() -> AuditPublisher:
    """
    Get the process-wide audit publisher.

    Emission is enabled only when KAFKA_AUDIT_TOPIC is set.
    """
    if not settings.KAFKA_AUDIT_TOPIC:
        logger.info("KAFKA_AUDIT_TOPIC not set, audit events disabled")
        return AuditPublisher()

    return AuditPublisher(KafkaAuditSink(topic=settings.KAFKA_AUDIT_TOPIC))
