"""Unit test configuration and fixtures."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from extractor.services.api_server import ApiServerConfig
from extractor.services.error_budget import ErrorBudget

PREVIEW_SUFFIXES = ("image-preview-800.jpg", "image-preview-320.jpg", "image-preview-128.jpg")


@pytest.fixture
def api_config() -> ApiServerConfig:
    """Object detection configuration against a local api server."""
    return ApiServerConfig(
        name="object detection",
        api_server_url="http://localhost:3001",
        api_path="/objects",
        image_preview_suffixes=PREVIEW_SUFFIXES,
        entry_suffix="objects.json",
        concurrent=2,
        timeout=5.0,
    )


@pytest.fixture
def error_budget(api_config) -> ErrorBudget:
    return ErrorBudget(api_config.name)


@pytest.fixture
def metric_value():
    """Read a sample value from the default Prometheus registry."""

    def _metric_value(name: str, **labels: str) -> float:
        return REGISTRY.get_sample_value(name, labels) or 0.0

    return _metric_value
