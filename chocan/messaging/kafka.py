"""Kafka publisher for fan-out notifications of committed records."""

import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Protocol

from confluent_kafka import KafkaError, KafkaException, Producer
from confluent_kafka.admin import AdminClient, NewTopic

from chocan.config import ChannelConfig, KafkaConfig
from chocan.exceptions import ConfigurationError, NotificationError
from chocan.messaging.serialization import to_dict, to_json_bytes
from chocan.models.base import NotificationEvent

logger = logging.getLogger(__name__)

CLOUDEVENTS_SPEC_VERSION = "1.0"


class Publisher(Protocol):
    """Anything that can publish an entity to a named channel."""

    def resolve_channel(self, channel_key: str) -> ChannelConfig:
        """Return the channel configuration or raise ConfigurationError."""

    def send(self, channel_key: str, entity: Any) -> NotificationEvent:
        """Publish an entity; raises NotificationError on failure."""


class KafkaPublisher:
    """Publish entities to Kafka topics, one producer per call.

    Every consumer group subscribed to a topic receives its own copy of
    each message. Messages sent to a topic nobody reads are dropped once
    retention expires. ``send`` never waits for consumers, and with the
    default ``acks="0"`` not for the broker either.
    """

    def __init__(
        self,
        channels: dict[str, ChannelConfig],
        config: KafkaConfig | None = None,
    ) -> None:
        """Initialize Kafka publisher.

        Parameters
        ----------
        channels : dict[str, ChannelConfig]
            Channel key to destination (bootstrap servers + topic).
        config : KafkaConfig | None
            Producer settings shared by all channels.
        """
        self.channels = channels
        self.config = config or KafkaConfig()
        self._declared: set[tuple[str, str]] = set()
        self._declared_lock = threading.Lock()

    def resolve_channel(self, channel_key: str) -> ChannelConfig:
        """Look up a channel by key.

        Raises
        ------
        ConfigurationError
            If the key is unknown or its destination is incomplete.
        """
        channel = self.channels.get(channel_key)
        if channel is None:
            raise ConfigurationError(f"Unknown notification channel '{channel_key}'")
        if not channel.is_complete:
            raise ConfigurationError(
                f"Notification channel '{channel_key}' needs bootstrap_servers and topic"
            )
        return channel

    def send(self, channel_key: str, entity: Any) -> NotificationEvent:
        """Serialize an entity and publish it to the channel's topic.

        Returns
        -------
        NotificationEvent
            The event that was handed to the producer.
        """
        channel = self.resolve_channel(channel_key)
        entity_id = getattr(entity, "id", None)
        event = NotificationEvent(
            channel_key=channel_key,
            event_type=f"{type(entity).__name__.lower()}.created",
            payload=to_dict(entity),
            subject=str(entity_id) if entity_id is not None else None,
        )

        try:
            self._declare_topic(channel)
            self._produce(channel, event)
        except (KafkaException, BufferError) as e:
            raise NotificationError(
                f"Failed to publish {event.event_type} to {channel.topic}: {e}"
            ) from e

        logger.info(
            "Published %s (id=%s) to %s", event.event_type, event.subject, channel.topic
        )
        return event

    def declare(self, channel_key: str) -> ChannelConfig:
        """Create the channel's topic ahead of the first publish."""
        channel = self.resolve_channel(channel_key)
        try:
            self._declare_topic(channel)
        except KafkaException as e:
            raise NotificationError(f"Failed to declare {channel.topic}: {e}") from e
        return channel

    def _declare_topic(self, channel: ChannelConfig) -> None:
        """Create the topic if missing; an existing topic counts as success.

        A topic is declared once per publisher. Every broker round trip is
        bounded by ``flush_timeout``, so an unreachable broker fails the
        call instead of holding the caller for librdkafka's default timeout.
        """
        key = (channel.bootstrap_servers, channel.topic)
        with self._declared_lock:
            if key in self._declared:
                return

        timeout = self.config.flush_timeout
        admin = AdminClient({"bootstrap.servers": channel.bootstrap_servers})
        futures = admin.create_topics(
            [
                NewTopic(
                    channel.topic,
                    num_partitions=self.config.num_partitions,
                    replication_factor=self.config.replication_factor,
                )
            ],
            request_timeout=timeout,
            operation_timeout=timeout,
        )
        for topic, future in futures.items():
            try:
                future.result(timeout=timeout)
                logger.info("Created topic: %s", topic)
            except FutureTimeoutError:
                reason = f"Declaring {topic} timed out after {timeout}s"
                raise KafkaException(KafkaError(KafkaError._TIMED_OUT, reason)) from None
            except KafkaException as e:
                if e.args and e.args[0].code() == KafkaError.TOPIC_ALREADY_EXISTS:
                    continue
                raise

        with self._declared_lock:
            self._declared.add(key)

    def _produce(self, channel: ChannelConfig, event: NotificationEvent) -> None:
        producer = Producer(
            {**self.config.to_dict(), "bootstrap.servers": channel.bootstrap_servers}
        )
        try:
            producer.produce(
                topic=channel.topic,
                key=event.subject.encode("utf-8") if event.subject else None,
                value=to_json_bytes(event.payload),
                headers=self._headers(event),
                callback=self._delivery_callback,
            )
            producer.poll(0)
        finally:
            # Releases the producer; only waits for the send, never for consumers
            remaining = producer.flush(self.config.flush_timeout)
            if remaining:
                logger.warning("%d message(s) still queued for %s", remaining, channel.topic)
                producer.purge()

    def _headers(self, event: NotificationEvent) -> list[tuple[str, bytes]]:
        """CloudEvents binary-mode headers."""
        return [
            ("ce_specversion", CLOUDEVENTS_SPEC_VERSION.encode()),
            ("ce_id", event.event_id.encode()),
            ("ce_type", event.event_type.encode()),
            ("ce_source", event.source.encode()),
            ("ce_time", event.event_time.isoformat().encode()),
            ("content-type", b"application/json"),
        ]

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            logger.error("Delivery failed: %s", err)
        else:
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())
