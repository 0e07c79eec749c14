"""Unit tests for the api feature stages."""

import logging
from unittest.mock import patch

import httpx
import pytest

from extractor.core.config import ApiServerSettings, Settings
from extractor.core.exceptions import ConfigurationError
from extractor.services.api_features import (
    API_FEATURES,
    FACE_DETECTION,
    OBJECT_DETECTION,
    SIMILAR_DETECTION,
    build_api_server_config,
    face_detection,
    log_public_api_privacy_hint,
    object_detection,
    similar_embeddings,
)
from extractor.services.dispatcher import iterate

LOGGER_NAME = "extractor.services.api_features"


async def _collect(stream):
    return [item async for item in stream]


def _settings(**api_server) -> Settings:
    api_server.setdefault("url", "http://localhost:3001")
    return Settings(api_server=ApiServerSettings(**api_server))


class TestBuildApiServerConfig:
    """Tests for feature configuration binding."""

    def test_object_detection_config(self, isolated_settings) -> None:
        config = build_api_server_config(
            OBJECT_DETECTION, _settings(concurrent=3, timeout=12.5)
        )

        assert config.name == "object detection"
        assert config.url == "http://localhost:3001/objects"
        assert config.entry_suffix == "objects.json"
        assert config.concurrent == 3
        assert config.timeout == 12.5

    def test_preview_sizes_filtered_to_800(self, isolated_settings) -> None:
        config = build_api_server_config(SIMILAR_DETECTION, _settings())

        assert config.image_preview_suffixes == (
            "image-preview-800.jpg",
            "image-preview-320.jpg",
            "image-preview-128.jpg",
        )

    def test_custom_preview_sizes_keep_order(self, isolated_settings) -> None:
        settings = Settings(
            image_preview_sizes=[1024, 600, 801, 400],
            api_server=ApiServerSettings(url="http://localhost:3001"),
        )

        config = build_api_server_config(FACE_DETECTION, settings)

        assert config.image_preview_suffixes == ("image-preview-600.jpg", "image-preview-400.jpg")

    def test_features_are_distinct(self) -> None:
        assert [f.api_path for f in API_FEATURES] == ["/embeddings", "/objects", "/faces"]
        assert [f.entry_suffix for f in API_FEATURES] == [
            "similarity-embeddings.json",
            "objects.json",
            "faces.json",
        ]


class TestDisabledFeatures:
    """Tests for disabling features via settings."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("factory", "key"),
        [
            (similar_embeddings, "similarDetection"),
            (object_detection, "objectDetection"),
            (face_detection, "faceDetection"),
        ],
    )
    async def test_disabled_feature_passes_through(
        self, isolated_settings, memory_storage, make_entry, factory, key, caplog
    ) -> None:
        entries = [make_entry() for _ in range(3)]
        for entry in entries:
            memory_storage.add(entry, "image-preview-320.jpg")

        with (
            caplog.at_level(logging.INFO, logger=LOGGER_NAME),
            patch("httpx.AsyncClient.post") as mock_post,
        ):
            stage = factory(memory_storage, _settings(disable=key))
            result = await _collect(stage(iterate(entries)))

        assert result == entries
        mock_post.assert_not_called()
        assert memory_storage.writes == []
        assert any(r.getMessage().startswith("Disable ") for r in caplog.records)

    @pytest.mark.asyncio
    async def test_disable_list(self, isolated_settings, memory_storage, make_entry) -> None:
        entry = make_entry()
        memory_storage.add(entry, "image-preview-320.jpg")
        settings = _settings(disable=["faceDetection", "objectDetection"])

        with patch("httpx.AsyncClient.post") as mock_post:
            mock_post.return_value = httpx.Response(200, content=b"[]")
            for factory in (face_detection, object_detection, similar_embeddings):
                await _collect(factory(memory_storage, settings)(iterate([entry])))

        mock_post.assert_awaited_once()
        assert mock_post.call_args.args[0] == "http://localhost:3001/embeddings"
        assert memory_storage.get(entry, "similarity-embeddings.json") == b"[]"

    @pytest.mark.asyncio
    async def test_enabled_feature_stores_result(
        self, isolated_settings, memory_storage, make_entry
    ) -> None:
        entry = make_entry()
        memory_storage.add(entry, "image-preview-128.jpg")

        with patch("httpx.AsyncClient.post") as mock_post:
            mock_post.return_value = httpx.Response(200, content=b'{"faces":[]}')
            await _collect(face_detection(memory_storage, _settings())(iterate([entry])))

        assert memory_storage.get(entry, "faces.json") == b'{"faces":[]}'


class TestPrivacyHint:
    """Tests for the public api server notice."""

    @pytest.mark.asyncio
    async def test_public_server_warns(self, isolated_settings, make_entry, caplog) -> None:
        settings = Settings()
        entries = [make_entry()]

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            stage = log_public_api_privacy_hint(settings)
            result = await _collect(stage(iterate(entries)))

        assert result == entries
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "public api server https://api.home-gallery.org" in warnings[0].getMessage()
        assert "https://docs.home-gallery.org" in warnings[0].getMessage()

    def test_private_server_logs_debug(self, isolated_settings, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            log_public_api_privacy_hint(_settings(concurrent=2, timeout=10))

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
        messages = [r.getMessage() for r in caplog.records]
        assert "Use api server http://localhost:3001" in messages
        assert "Use api server with 2 concurrent connections and timeout of 10.0s" in messages


def test_no_usable_preview_size_is_a_configuration_error(isolated_settings):
    settings = Settings(
        image_preview_sizes=[1920, 1280],
        api_server=ApiServerSettings(url="http://localhost:3001"),
    )

    with pytest.raises(ConfigurationError, match="No image preview size"):
        build_api_server_config(OBJECT_DETECTION, settings)
