# tests/test_scoring.py
import pytest

from docextract.core.types import ExtractedField
from docextract.normalization.scoring import (
    confidence_range,
    content_quality,
    field_weight,
    overall_confidence,
    score_field,
    variety_score,
)


def test_content_quality_typed_checks():
    assert content_quality("Email", "a@b.co") == 0.95
    assert content_quality("Email", "nope") == 0.3
    assert content_quality("Phone", "(555) 123-4567") == 0.9
    assert content_quality("Phone", "12") == 0.4
    assert content_quality("Date", "2024-03-15") == 0.9
    assert content_quality("Date", "soon") == 0.4
    assert content_quality("Total Amount", "$1,234.50") == 0.95
    assert content_quality("Total Amount", "lots") == 0.3
    assert content_quality("Zip", "12345-6789") == 0.9
    assert content_quality("Postal Code", "K1A 0B1") == 0.9
    assert content_quality("Zip", "abc") == 0.5
    assert content_quality("Notes", "x" * 101) == 0.8
    assert content_quality("Anything", "") == 0.1
    assert content_quality("Anything", "ab") == 0.4


def test_content_quality_fallback_blend():
    value = "abcdefghij"  # 10 unique chars
    expected = 0.6 * (10 / 20) + 0.4 * variety_score(value)
    assert content_quality("Reference", value) == pytest.approx(expected)
    assert variety_score(value) == pytest.approx(10 / 15)


def test_score_field_blend_and_range():
    f = ExtractedField(name="Email", value="a@b.co", confidence=0.8)
    assert score_field(f) == pytest.approx(0.7 * 0.8 + 0.3 * 0.95)

    hi = ExtractedField(name="Email", value="a@b.co", confidence=5.0)
    assert score_field(hi) == 1.0


def test_field_weight():
    assert field_weight("Invoice Number") == 2.0
    assert field_weight("Customer Name") == 2.0
    assert field_weight("Email") == 1.5
    assert field_weight("Tax") == 1.5
    assert field_weight("Payment Method") == 1.0


def test_overall_confidence_is_weighted_mean():
    fields = [
        ExtractedField(name="Total", value="1", confidence=0.9),  # 2.0
        ExtractedField(name="Phone", value="1", confidence=0.6),  # 1.5
        ExtractedField(name="Color", value="1", confidence=0.3),  # 1.0
    ]
    expected = (0.9 * 2.0 + 0.6 * 1.5 + 0.3 * 1.0) / 4.5
    assert overall_confidence(fields) == pytest.approx(expected)
    assert 0.0 <= overall_confidence(fields) <= 1.0


def test_overall_confidence_empty():
    assert overall_confidence([]) == 0.0
    assert confidence_range([]) == (0.0, 0.0)


def test_confidence_range():
    fields = [
        ExtractedField(name="a", value="1", confidence=0.2),
        ExtractedField(name="b", value="1", confidence=0.7),
    ]
    assert confidence_range(fields) == (0.2, 0.7)
