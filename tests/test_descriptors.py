"""
tests.test_descriptors

Descriptor decoding and matching properties.
"""

from __future__ import annotations

import base64
import json
import math

import numpy as np
import pytest

from mfa_gateway.verification.descriptors import (
    DescriptorMatcher,
    EncodedText,
    RawVector,
    as_descriptor_input,
    euclidean_distance,
)

V = [0.1, -0.25, 0.5, 0.0]


@pytest.fixture
def matcher() -> DescriptorMatcher:
    return DescriptorMatcher(threshold=0.6)


def test_transport_shapes_decode_to_the_same_vector(matcher: DescriptorMatcher) -> None:
    as_json = json.dumps(V)
    as_b64 = base64.b64encode(as_json.encode()).decode()
    double_encoded = json.dumps(as_json)

    expected = np.asarray(V, dtype=np.float32)
    for raw in (RawVector(V), EncodedText(as_json), EncodedText(as_b64), EncodedText(double_encoded)):
        decoded = matcher.decode(raw)
        assert decoded is not None
        assert decoded.vector.dtype == np.float32
        assert np.array_equal(decoded.vector, expected)


def test_stored_encoding_matches_its_source_exactly(matcher: DescriptorMatcher) -> None:
    stored = matcher.encode(V)
    assert matcher.compare(stored, V, threshold=1e-9)
    assert matcher.compare(stored, EncodedText(stored), threshold=1e-9)


@pytest.mark.parametrize(
    "raw",
    [
        [],
        [True, False, True],
        ["0.1", "0.2"],
        [0.1, None],
        [[0.1, 0.2], [0.3, 0.4]],
        "not a descriptor",
        "",
        "NaN",
        json.dumps([0.1, float("inf")]),
        {"values": V},
        42,
    ],
)
def test_invalid_inputs_never_raise(matcher: DescriptorMatcher, raw) -> None:
    assert matcher.decode(raw) is None
    assert matcher.validate(raw) is False
    assert matcher.compare(matcher.encode(V), raw) is False


def test_compare_is_symmetric(matcher: DescriptorMatcher) -> None:
    a = [0.0, 0.0, 0.0, 0.0]
    b = [0.3, 0.0, 0.4, 0.0]
    assert matcher.compare(a, b) == matcher.compare(b, a)
    assert matcher.compare(a, b, threshold=0.4) == matcher.compare(b, a, threshold=0.4)


def test_threshold_decides_match(matcher: DescriptorMatcher) -> None:
    near = [V[0] + 0.3, *V[1:]]
    far = [V[0] + 0.9, *V[1:]]
    assert matcher.compare(V, near)
    assert not matcher.compare(V, far)
    assert matcher.compare(V, far, threshold=1.0)


def test_length_mismatch_is_no_match(matcher: DescriptorMatcher) -> None:
    assert matcher.compare(V, V[:3]) is False
    assert matcher.compare(V, [*V, 0.0]) is False


def test_euclidean_distance_matches_float64_reference(matcher: DescriptorMatcher) -> None:
    a = matcher.decode([3.0, 0.0])
    b = matcher.decode([0.0, 4.0])
    assert a is not None and b is not None
    assert math.isclose(euclidean_distance(a, b), 5.0)


def test_deployment_dimensions_only_constrain_enrollment() -> None:
    matcher = DescriptorMatcher(threshold=0.6, dimensions=128)
    short = matcher.decode(V)
    assert short is not None
    assert matcher.fits_deployment(short) is False


def test_boundary_classification() -> None:
    assert isinstance(as_descriptor_input(V), RawVector)
    assert isinstance(as_descriptor_input("[0.1]"), EncodedText)
    assert as_descriptor_input(None) is None


def test_threshold_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DescriptorMatcher(threshold=0)
