from __future__ import annotations

import pytest

from domain.exceptions import ConfigurationError
from infrastructure.telemetry import ConfigProperties


def test_explicit_property_wins_over_environment() -> None:
    properties = ConfigProperties(
        {"otel.exporter.otlp.protocol": "http/protobuf"},
        {"OTEL_EXPORTER_OTLP_PROTOCOL": "grpc", "OTEL_EXPORTER_OTLP_ENDPOINT": "http://collector:4317"},
    )

    assert properties.get_string("otel.exporter.otlp.protocol") == "http/protobuf"
    assert properties.get_string("otel.exporter.otlp.endpoint") == "http://collector:4317"


def test_blank_values_are_treated_as_unset() -> None:
    properties = ConfigProperties({"otel.service.name": "  "}, {"OTEL_SERVICE_NAME": "from-env"})

    assert properties.get_string("otel.service.name") == "from-env"
    assert properties.get_string("otel.traces.sampler") is None


def test_env_name_derivation() -> None:
    assert ConfigProperties.env_name("otel.exporter.otlp.traces.endpoint") == "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"


def test_numeric_accessors_reject_garbage() -> None:
    properties = ConfigProperties({"otel.metric.export.interval": "soon", "otel.traces.sampler.arg": "half"}, {})

    assert properties.get_int("otel.bsp.schedule.delay", 5000) == 5000
    with pytest.raises(ConfigurationError):
        properties.get_int("otel.metric.export.interval", 60000)
    with pytest.raises(ConfigurationError):
        properties.get_float("otel.traces.sampler.arg", 1.0)


def test_get_map_decodes_values_and_skips_empty_entries() -> None:
    properties = ConfigProperties(
        {"otel.resource.attributes": "team=obs%20core, ,deployment.environment = test"}, {}
    )

    assert properties.get_map("otel.resource.attributes") == {
        "team": "obs core",
        "deployment.environment": "test",
    }


def test_get_map_rejects_entries_without_separator() -> None:
    properties = ConfigProperties({"otel.exporter.otlp.headers": "x-tenant"}, {})

    with pytest.raises(ConfigurationError):
        properties.get_map("otel.exporter.otlp.headers")
