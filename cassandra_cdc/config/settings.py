"""
Pydantic Settings Models for CDC Publisher Configuration
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SEGMENT_DECODER = "cassandra_cdc.cdc.decoder:FramedJsonSegmentDecoder"


class OverflowPolicy(str, Enum):
    """What the trigger work queue does when it is full"""

    REJECT = "reject"
    BLOCK = "block"


class CassandraSettings(BaseSettings):
    """Source table filter and commit log location"""

    keyspace: str = Field(..., description="Only mutations for this keyspace produce events")
    table: str = Field(..., description="Only mutations for this table produce events")
    cdc_raw_directory: str = Field(
        default="/var/lib/cassandra/cdc_raw", description="Directory watched for new segments"
    )
    poll_interval_seconds: float = Field(default=1.0, gt=0, le=60)
    segment_pattern: str = Field(default="CommitLog-*.log", description="Glob for segment files")
    decoder: str = Field(
        default=DEFAULT_SEGMENT_DECODER, description="module:Class of the segment decoder"
    )

    model_config = SettingsConfigDict(env_prefix="CDC_CASSANDRA_")

    @field_validator("decoder")
    @classmethod
    def validate_decoder_path(cls, v: str) -> str:
        """Decoder must be given as module:Class"""
        module, _, attr = v.partition(":")
        if not module or not attr:
            raise ValueError(f"decoder must look like 'package.module:Class', got {v!r}")
        return v


class KafkaSettings(BaseSettings):
    """Destination topic and broker client properties"""

    topic: str = Field(..., min_length=1, description="Destination topic for all events")
    configuration: Dict[str, Any] = Field(
        default_factory=lambda: {"bootstrap.servers": "localhost:9092"},
        description="Broker client properties, passed through verbatim",
    )
    flush_timeout_seconds: float = Field(default=10.0, ge=0, le=600)

    model_config = SettingsConfigDict(env_prefix="CDC_KAFKA_")


class PipelineSettings(BaseSettings):
    """Trigger path worker pool tuning"""

    max_workers: int = Field(default=20, ge=1, le=256, description="Concurrent workers")
    queue_capacity: int = Field(
        default=10000, ge=1, le=1_000_000, description="Queued tasks before overflow"
    )
    overflow_policy: OverflowPolicy = Field(default=OverflowPolicy.REJECT)
    block_timeout_seconds: float = Field(default=1.0, ge=0, le=60)

    model_config = SettingsConfigDict(env_prefix="CDC_PIPELINE_")


class DLQSettings(BaseSettings):
    """Dead letter file for events the broker did not accept"""

    enabled: bool = Field(default=False)
    directory: str = Field(default="data/dlq")

    model_config = SettingsConfigDict(env_prefix="CDC_DLQ_")


class ObservabilitySettings(BaseSettings):
    """Metrics, logging, and tracing configuration"""

    metrics_enabled: bool = Field(default=True)
    metrics_port: int = Field(default=9090, ge=1024, le=65535)
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = Field(default="json", pattern="^(json|console)$")
    enable_tracing: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="CDC_")


class CDCSettings(BaseSettings):
    """Complete configuration of the commit log (batch) publisher"""

    cassandra: CassandraSettings
    kafka: KafkaSettings
    dlq: DLQSettings = Field(default_factory=DLQSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_prefix="CDC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class TriggerSettings(BaseSettings):
    """
    Configuration of the in-process trigger

    Built from a flat property file: ``topic.name`` selects the topic and
    every other key is handed to the broker client.
    """

    topic: str = Field(..., min_length=1)
    producer_configuration: Dict[str, Any] = Field(default_factory=dict)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    dlq_directory: Optional[str] = Field(default=None)
