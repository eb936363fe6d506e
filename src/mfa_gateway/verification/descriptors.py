"""
mfa_gateway.verification.descriptors

Face descriptor decoding, encoding and matching.

Responsibilities:
- Resolve a transport value (numeric array, JSON text, base64-wrapped JSON text) into a single
  fixed-precision vector type exactly once, at the boundary.
- Compare two descriptors by Euclidean distance against a configurable threshold.
- Produce the canonical storage encoding (JSON text wrapped in base64).

Every malformed input is treated as "invalid" or "no match"; nothing in this module raises on
bad descriptor data.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from mfa_gateway.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.6

# JSON text may itself be JSON-stringified or base64-wrapped; bound the unwrapping.
_MAX_TEXT_NESTING = 3


@dataclass(frozen=True, slots=True)
class RawVector:
    """Descriptor submitted as a JSON array of numbers."""

    values: Sequence[Any]


@dataclass(frozen=True, slots=True)
class EncodedText:
    """Descriptor submitted (or stored) as text: JSON, or base64 of JSON."""

    text: str


DescriptorInput = RawVector | EncodedText


@dataclass(frozen=True, slots=True, eq=False)
class Descriptor:
    """Decoded descriptor: a non-empty, finite, 1-D float32 vector."""

    vector: npt.NDArray[np.float32]

    @property
    def dimensions(self) -> int:
        return int(self.vector.shape[0])


def as_descriptor_input(raw: Any) -> DescriptorInput | None:
    # Boundary helper: classify the transport shape once; None means unusable.
    if isinstance(raw, str):
        return EncodedText(raw)
    if isinstance(raw, (list, tuple)):
        return RawVector(raw)
    return None


def euclidean_distance(a: Descriptor, b: Descriptor) -> float:
    if a.dimensions != b.dimensions:
        raise ValueError("descriptors must have the same dimensionality")
    diff = a.vector.astype(np.float64) - b.vector.astype(np.float64)
    return float(np.sqrt(np.sum(diff * diff)))


class DescriptorMatcher:
    def __init__(
        self,
        *,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        dimensions: int | None = None,
    ) -> None:
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self.threshold = threshold
        # Expected dimensionality D for this deployment (None = accept any non-empty vector).
        self.dimensions = dimensions

    def decode(self, raw: Descriptor | DescriptorInput | Any) -> Descriptor | None:
        if isinstance(raw, Descriptor):
            return raw
        if isinstance(raw, np.ndarray):
            return _to_descriptor(raw.tolist())
        if not isinstance(raw, (RawVector, EncodedText)):
            raw = as_descriptor_input(raw)
        if isinstance(raw, RawVector):
            return _to_descriptor(raw.values)
        if isinstance(raw, EncodedText):
            return _to_descriptor(_parse_text(raw.text))
        return None

    def validate(self, raw: Any) -> bool:
        return self.decode(raw) is not None

    def fits_deployment(self, descriptor: Descriptor) -> bool:
        return self.dimensions is None or descriptor.dimensions == self.dimensions

    def compare(
        self,
        stored_raw: Any,
        incoming_raw: Any,
        threshold: float | None = None,
    ) -> bool:
        stored = self.decode(stored_raw)
        incoming = self.decode(incoming_raw)
        if stored is None or incoming is None:
            log.info("descriptor.compare_undecodable")
            return False
        if stored.dimensions != incoming.dimensions:
            log.info(
                "descriptor.dimension_mismatch",
                stored=stored.dimensions,
                incoming=incoming.dimensions,
            )
            return False
        limit = self.threshold if threshold is None else threshold
        distance = euclidean_distance(stored, incoming)
        log.debug("descriptor.distance", distance=round(distance, 4), threshold=limit)
        return distance <= limit

    def encode(self, vector: Descriptor | Sequence[float] | npt.NDArray[Any]) -> str:
        descriptor = self.decode(vector)
        if descriptor is None:
            raise ValueError("cannot encode an invalid descriptor")
        text = json.dumps([float(x) for x in descriptor.vector])
        return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _parse_text(text: str, depth: int = 0) -> Any:
    if depth > _MAX_TEXT_NESTING:
        return None
    stripped = text.strip()
    if not stripped:
        return None
    try:
        parsed = json.loads(stripped)
    except ValueError:
        pass
    else:
        if isinstance(parsed, str):
            return _parse_text(parsed, depth + 1)
        return parsed
    try:
        decoded = base64.b64decode(stripped, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    return _parse_text(decoded, depth + 1)


def _to_descriptor(values: Any) -> Descriptor | None:
    if not isinstance(values, (list, tuple)) or not values:
        return None
    # bool is an int subclass; a list of flags is not a descriptor.
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in values):
        return None
    try:
        vector = np.asarray(values, dtype=np.float32)
    except (OverflowError, ValueError, TypeError):
        return None
    if vector.ndim != 1 or not np.all(np.isfinite(vector)):
        return None
    return Descriptor(vector=vector)


# --- Module Notes -----------------------------------------------------------
# Stored descriptors are always written via `encode`, so `compare(encode(v), v)` sees
# bit-identical float32 vectors (distance 0).
