"""
Output sinks for per-entity trend records.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

import structlog
from kafka import KafkaProducer

from src.trend.models import Window, WindowResult

from .models import TrendRecord

logger = structlog.get_logger(__name__)

HEADER = (
    "TIMESTAMP;ACTIVEOBJS;OBJSIZE;SLAB NAME;"
    "ACT;CT;VT;FVT;SVT;ZT;TrendTOTAL;"
    "ACM;CM;VM;FVM;SVM;ZM;TRENDMIDTERM;"
    "ACS;CS;VS;FVS;SVS;ZS;TRENDSHORTTERM"
)
CYCLE_END = "----ENDED----"


class RecordSink(ABC):
    """Destination for trend records"""

    @abstractmethod
    def write(self, record: TrendRecord) -> None:
        pass

    def end_cycle(self) -> None:
        """Called once after the last record of a cycle"""

    def close(self) -> None:
        """Flush and release the sink"""


def format_window(result: WindowResult) -> str:
    return ";".join(
        [
            str(result.s),
            str(result.n),
            f"{result.var_s:f}",
            f"{result.base_variance:e}",
            f"{result.tie_term:e}",
            f"{result.z:f}",
            f"{'YES' if result.verdict else 'NO':<10}",
        ]
    )


def format_record(record: TrendRecord) -> str:
    """Render a record as one semicolon-delimited line (no newline)"""
    head = f"{record.timestamp};{record.count:6d};{record.unit_size:6d};{record.name:<23}"
    windows = ";".join(format_window(record.results[window]) for window in Window)
    return f"{head};{windows}"


class DelimitedFileSink(RecordSink):
    """Appends records to a semicolon-delimited text log"""

    def __init__(self, path: str):
        self.path = Path(path)
        try:
            self._file = self.path.open("a", encoding="utf-8")
            self._file.write(HEADER + "\n")
            self._file.flush()
            logger.info("Delimited log opened", path=str(self.path))
        except OSError as e:
            logger.error("Failed to open delimited log", path=str(self.path), error=str(e))
            raise

    def write(self, record: TrendRecord) -> None:
        self._file.write(format_record(record) + "\n")

    def end_cycle(self) -> None:
        self._file.write(CYCLE_END + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()
            logger.info("Delimited log closed", path=str(self.path))


class KafkaSink(RecordSink):
    """Publishes records as JSON messages to a Kafka topic"""

    def __init__(self, bootstrap_servers: str, topic: str):
        self.topic = topic
        try:
            self.producer = KafkaProducer(
                bootstrap_servers=bootstrap_servers,
                value_serializer=lambda v: json.dumps(v).encode("utf-8"),
                key_serializer=lambda k: k.encode("utf-8"),
                compression_type="gzip",
            )
            logger.info(
                "Kafka producer initialized",
                bootstrap_servers=bootstrap_servers,
                topic=topic,
            )
        except Exception as e:
            logger.error("Failed to initialize Kafka producer", error=str(e))
            raise

    def write(self, record: TrendRecord) -> None:
        self.producer.send(self.topic, key=record.name, value=record.to_dict())

    def end_cycle(self) -> None:
        self.producer.flush()

    def close(self) -> None:
        self.producer.close()
        logger.info("Kafka producer closed", topic=self.topic)
