"""
Base collector abstract class for ServerTech PDU metric categories.
"""
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from threading import Lock
from typing import Iterable, List, Optional
import logging

from .metrics import MetricDescriptor, MetricEmission, MetricSink


class ServerTechError(Exception):
    """Base class for errors that fail a single collector's scrape."""


class DecodeError(ServerTechError):
    """The device returned JSON that does not match the expected shape."""


class ErrorCounter:
    """
    Cumulative error count for one collector category.

    Shared by every scrape in the process, so the exported value is a running
    total rather than a per-scrape flag.
    """

    def __init__(self):
        self._value = 0.0
        self._lock = Lock()

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def increment(self) -> float:
        with self._lock:
            self._value += 1
            return self._value


@dataclass
class CollectorResult:
    error_count: float
    error: Optional[BaseException] = None

    @property
    def up(self) -> bool:
        return self.error is None


def _decode_value(field_name: str, field_type: type, value):
    if value is None:
        return field_type()
    if field_type is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeError(f"field {field_name!r}: expected number, got {type(value).__name__}")
        return float(value)
    if not isinstance(value, str):
        raise DecodeError(f"field {field_name!r}: expected string, got {type(value).__name__}")
    return value


def decode_entity(entity_cls: type, data):
    """
    Build an entity dataclass from one decoded JSON object.

    Missing or null fields take the zero value of their type ("" or 0.0) and
    unknown fields are ignored.

    Raises:
        DecodeError: If data is not an object or a field has the wrong type
    """
    if not isinstance(data, dict):
        raise DecodeError(f"expected object, got {type(data).__name__}")

    values = {}
    for field in fields(entity_cls):
        values[field.name] = _decode_value(field.name, field.type, data.get(field.name))
    return entity_cls(**values)


def decode_json(raw: bytes, entity_cls: type, many: bool = True):
    """
    Decode a raw category payload into entities.

    Args:
        raw: Response body from the device
        entity_cls: Entity dataclass for the category
        many: True if the payload is a JSON array of entities

    Returns:
        List of entities when many is True, otherwise a single entity

    Raises:
        DecodeError: If the payload is not valid JSON or has the wrong shape
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"invalid json: {e}")

    if not many:
        return decode_entity(entity_cls, data)

    if not isinstance(data, list):
        raise DecodeError(f"expected array, got {type(data).__name__}")
    return [decode_entity(entity_cls, item) for item in data]


class BaseCollector(ABC):
    """
    Abstract base class for all ServerTech category collectors.

    Each category collector declares the JSON path it reads, the entity
    dataclass it decodes into and implements process() to turn entities
    into metric emissions.
    """

    subsystem: str = ""
    path: str = ""
    entity: type = None
    many: bool = True

    def __init__(self, config: dict, client, error_counter: ErrorCounter):
        """
        Initialize collector.

        Args:
            config: "servertech" section of the exporter configuration
            client: Object with a fetch(target, user, password, path) method
            error_counter: Cumulative error counter for this category
        """
        self.config = config or {}
        self.client = client
        self.error_counter = error_counter
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    @abstractmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        """
        Return the metric descriptors this collector can emit.
        """
        pass

    @abstractmethod
    def process(self, data) -> Iterable[MetricEmission]:
        """
        Turn decoded entities into metric emissions.

        Args:
            data: List of entities, or a single entity for singleton categories

        Raises:
            DecodeError: If a field cannot be interpreted
        """
        pass

    def decode(self, raw: bytes):
        try:
            return decode_json(raw, self.entity, self.many)
        except DecodeError as e:
            raise DecodeError(f"cannot unmarshal {self.subsystem} json: {e}")

    def map(self, raw: bytes) -> List[MetricEmission]:
        """
        Decode a payload and map it to emissions.

        The result is fully built before it is returned, so a failure part way
        through produces no emissions at all.
        """
        return list(self.process(self.decode(raw)))

    def get(self, sink: MetricSink, target: str, user: str, password: str) -> CollectorResult:
        """
        Fetch this category from the device and write its metrics to the sink.

        Returns:
            CollectorResult carrying the cumulative error count and the error
            that failed this scrape, if any
        """
        try:
            raw = self.client.fetch(target, user, password, self.path)
            emissions = self.map(raw)
        except ServerTechError as e:
            return CollectorResult(self.error_counter.increment(), e)

        sink.add(emissions)
        return CollectorResult(self.error_counter.value)
