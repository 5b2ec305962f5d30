"""Configuration management for chocan."""

from dataclasses import dataclass, field
from typing import Any

TRANSACTION_CHANNEL = "transactions"


@dataclass
class KafkaConfig:
    """Kafka producer configuration for the notification channel.

    ``acks`` defaults to ``"0"``: publishers never wait for a broker or
    consumer acknowledgment.
    """

    bootstrap_servers: str = "localhost:9092"
    acks: str = "0"
    linger_ms: int = 0
    flush_timeout: float = 5.0
    num_partitions: int = 1
    replication_factor: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka producer config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
        }


@dataclass
class ChannelConfig:
    """Destination of one notification channel."""

    bootstrap_servers: str | None = None
    topic: str | None = None

    @property
    def is_complete(self) -> bool:
        """Whether both the destination address and topic are set."""
        return bool(self.bootstrap_servers) and bool(self.topic)


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "chocan"
    user: str = "postgres"
    password: str = "postgres"
    connect_timeout: int = 5

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            f"?connect_timeout={self.connect_timeout}"
        )


@dataclass
class ApiConfig:
    """HTTP boundary configuration."""

    title: str = "ChocAn API"
    default_limit: int = 25


@dataclass
class ChocAnConfig:
    """Main configuration for chocan."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    channels: dict[str, ChannelConfig] = field(default_factory=dict)
    store_backend: str = "memory"
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "ChocAnConfig":
        """Create config from environment variables."""
        import json
        import os

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "0"),
            flush_timeout=float(os.getenv("KAFKA_FLUSH_TIMEOUT", "5")),
        )

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "chocan"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        api = ApiConfig(
            default_limit=int(os.getenv("CHOCAN_DEFAULT_LIMIT", "25")),
        )

        # CHOCAN_CHANNELS='{"transactions": {"topic": "chocan.transactions"}}'
        channels_str = os.getenv("CHOCAN_CHANNELS")
        if channels_str:
            raw_channels = json.loads(channels_str)
        else:
            raw_channels = {
                TRANSACTION_CHANNEL: {
                    "topic": os.getenv("CHOCAN_TRANSACTION_TOPIC", "chocan.transactions"),
                },
            }
        channels = {
            key: ChannelConfig(
                bootstrap_servers=value.get("bootstrap_servers", kafka.bootstrap_servers),
                topic=value.get("topic"),
            )
            for key, value in raw_channels.items()
        }

        return cls(
            kafka=kafka,
            postgres=postgres,
            api=api,
            channels=channels,
            store_backend=os.getenv("CHOCAN_STORE", "memory"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
