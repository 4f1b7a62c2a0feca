"""Tests for CanonicalizerConfig environment fallbacks."""

import pytest

from cecanon.config import CanonicalizerConfig
from cecanon.mimetype import InvalidMimeTypeError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CECANON_DEFAULT_DATA_CONTENT_TYPE",
        "CECANON_TRACER_NAME",
        "CECANON_RECORD_SPAN_EVENTS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = CanonicalizerConfig()
    assert config.default_data_content_type == "application/json"
    assert config.tracer_name == "cecanon"
    assert config.record_span_events is True


def test_environment_fallbacks(monkeypatch):
    monkeypatch.setenv("CECANON_DEFAULT_DATA_CONTENT_TYPE", " text/plain ")
    monkeypatch.setenv("CECANON_TRACER_NAME", "orders")
    monkeypatch.setenv("CECANON_RECORD_SPAN_EVENTS", "False")
    config = CanonicalizerConfig()
    assert config.default_data_content_type == "text/plain"
    assert config.tracer_name == "orders"
    assert config.record_span_events is False


def test_explicit_values_win(monkeypatch):
    monkeypatch.setenv("CECANON_TRACER_NAME", "orders")
    monkeypatch.setenv("CECANON_RECORD_SPAN_EVENTS", "0")
    config = CanonicalizerConfig(tracer_name="billing", record_span_events=True)
    assert config.tracer_name == "billing"
    assert config.record_span_events is True


def test_invalid_default_content_type():
    with pytest.raises(InvalidMimeTypeError):
        CanonicalizerConfig(default_data_content_type="json")
