"""Notification channel publishing."""

from chocan.messaging.kafka import KafkaPublisher, Publisher

__all__ = ["KafkaPublisher", "Publisher"]
