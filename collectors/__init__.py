"""
Collector registry for the ServerTech PDU categories.
"""
from threading import Lock
from typing import Dict, List, Optional, Type
import logging

from .base import BaseCollector, CollectorResult, DecodeError, ErrorCounter, ServerTechError
from .client import FetchError, ServerTechClient
from .metrics import MetricSink

logger = logging.getLogger(__name__)


class CollectorRegistry:
    """
    Table of known collector categories.

    Each entry holds the collector class, its enable switch and the
    cumulative error counter shared by every scrape of that category.
    Registration happens once at startup; switches may change at runtime
    and take effect on the next build_enabled() call.
    """

    def __init__(self):
        self._collectors: Dict[str, Type[BaseCollector]] = {}
        self._enabled: Dict[str, bool] = {}
        self._errors: Dict[str, ErrorCounter] = {}
        self._lock = Lock()

    def register(self, name: str, enabled_by_default: bool, collector_cls: Type[BaseCollector]) -> None:
        with self._lock:
            self._collectors[name] = collector_cls
            self._enabled[name] = enabled_by_default
            self._errors.setdefault(name, ErrorCounter())

    def names(self) -> List[str]:
        with self._lock:
            return list(self._collectors)

    def is_enabled(self, name: str) -> bool:
        with self._lock:
            return self._enabled.get(name, False)

    def set_enabled(self, name: str, enabled: bool) -> None:
        with self._lock:
            if name not in self._collectors:
                raise ValueError(f"Unsupported collector: {name}")
            self._enabled[name] = bool(enabled)

    def apply_config(self, switches: Dict[str, bool]) -> None:
        """
        Apply enable/disable switches from the "collectors" config section.

        Unknown names are logged and ignored.
        """
        for name, enabled in (switches or {}).items():
            try:
                self.set_enabled(name, enabled)
            except ValueError:
                logger.warning(f"Ignoring switch for unknown collector: {name}")

    def enabled_names(self) -> List[str]:
        with self._lock:
            return [name for name in self._collectors if self._enabled[name]]

    def error_counter(self, name: str) -> ErrorCounter:
        with self._lock:
            return self._errors[name]

    def build_enabled(self, config: Optional[dict], client) -> Dict[str, BaseCollector]:
        """
        Instantiate every enabled collector.

        Args:
            config: "servertech" section of the exporter configuration
            client: Shared HTTP client used to fetch category payloads

        Returns:
            Dictionary mapping collector name to a fresh collector instance
        """
        with self._lock:
            entries = [
                (name, cls, self._errors[name])
                for name, cls in self._collectors.items()
                if self._enabled[name]
            ]
        return {name: cls(config, client, errors) for name, cls, errors in entries}


def register_defaults(registry: CollectorRegistry) -> CollectorRegistry:
    """Register all eight ServerTech categories, enabled by default."""
    from .branches import BranchesCollector
    from .cords import CordsCollector
    from .lines import LinesCollector
    from .ocps import OcpsCollector
    from .outlets import OutletsCollector
    from .phases import PhasesCollector
    from .system import SystemCollector
    from .units import UnitsCollector

    for collector_cls in (
        BranchesCollector,
        CordsCollector,
        LinesCollector,
        OcpsCollector,
        OutletsCollector,
        PhasesCollector,
        SystemCollector,
        UnitsCollector,
    ):
        registry.register(collector_cls.subsystem, True, collector_cls)
    return registry


default_registry = register_defaults(CollectorRegistry())

ALL_COLLECTORS = tuple(default_registry.names())


__all__ = [
    "ALL_COLLECTORS",
    "BaseCollector",
    "CollectorRegistry",
    "CollectorResult",
    "DecodeError",
    "ErrorCounter",
    "FetchError",
    "MetricSink",
    "ServerTechClient",
    "ServerTechError",
    "default_registry",
    "register_defaults",
]
