"""Abstract base for sensor payload adapters.

Sensor adapters normalise raw telemetry payloads from different phone
platforms into the canonical SensorSample model.

Architectural rules:
    1. Adapters must NOT mutate the incoming payload dict.
    2. adapt() must return a fully valid SensorSample or raise ValueError.
    3. No adapter may touch sessions or the UserStore.
    4. No plausibility scoring lives inside an adapter, only field mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from lumis_engine.domain.sensor import SensorSample


class SampleAdapter(ABC):
    """Base class for converting raw platform payloads into SensorSamples."""

    @abstractmethod
    def can_handle(self, raw: dict[str, Any]) -> bool:
        """Return True if this adapter knows how to translate *raw*.

        Must be a fast, non-destructive check (e.g. key presence).
        """
        ...

    @abstractmethod
    def adapt(self, raw: dict[str, Any]) -> SensorSample:
        """Translate a raw payload dict into a validated SensorSample.

        Raises:
            ValueError: If the payload cannot be normalised.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Name of the platform sensor feed this adapter handles."""
        ...
