"""Inference API feature stages.

Binds the shared api server stage to the concrete features of the api
server. Each feature can be disabled via the API_SERVER__DISABLE setting, in
which case its stage passes all entries through without any I/O.

Features:
    - similarDetection: similarity embeddings via /embeddings
    - objectDetection: object detection via /objects
    - faceDetection: face detection via /faces
"""

from __future__ import annotations

from dataclasses import dataclass

from extractor.core.config import PUBLIC_API_SERVER, Settings
from extractor.core.exceptions import ConfigurationError
from extractor.core.logging import get_logger
from extractor.services.api_server import ApiServerConfig, api_server_entry
from extractor.services.dispatcher import Stage, passthrough
from extractor.services.entry_storage import EntryStorage
from extractor.services.image_preview import image_preview_suffixes

logger = get_logger(__name__)

DOCUMENTATION_URL = "https://docs.home-gallery.org"

# Largest preview dimension accepted by the api server
MAX_API_PREVIEW_SIZE = 800


@dataclass(frozen=True, slots=True)
class ApiFeature:
    """Static description of an api server feature."""

    key: str
    name: str
    api_path: str
    entry_suffix: str


SIMILAR_DETECTION = ApiFeature(
    key="similarDetection",
    name="similarity embeddings",
    api_path="/embeddings",
    entry_suffix="similarity-embeddings.json",
)
OBJECT_DETECTION = ApiFeature(
    key="objectDetection",
    name="object detection",
    api_path="/objects",
    entry_suffix="objects.json",
)
FACE_DETECTION = ApiFeature(
    key="faceDetection",
    name="face detection",
    api_path="/faces",
    entry_suffix="faces.json",
)

API_FEATURES = (SIMILAR_DETECTION, OBJECT_DETECTION, FACE_DETECTION)


def api_server_preview_size_filter(size: int) -> bool:
    return size <= MAX_API_PREVIEW_SIZE


def build_api_server_config(feature: ApiFeature, settings: Settings) -> ApiServerConfig:
    """Build the api server configuration of a feature from settings.

    Raises:
        ConfigurationError: If no preview size is small enough for the api
    """
    api_server = settings.api_server
    suffixes = image_preview_suffixes(settings.image_preview_sizes, api_server_preview_size_filter)
    if not suffixes:
        raise ConfigurationError(
            f"No image preview size of at most {MAX_API_PREVIEW_SIZE} for {feature.name}",
            details={"image_preview_sizes": settings.image_preview_sizes},
        )
    return ApiServerConfig(
        name=feature.name,
        api_server_url=api_server.url,
        api_path=feature.api_path,
        image_preview_suffixes=suffixes,
        entry_suffix=feature.entry_suffix,
        concurrent=api_server.concurrent,
        timeout=api_server.timeout,
    )


def feature_stage(storage: EntryStorage, settings: Settings, feature: ApiFeature) -> Stage:
    """Create the stage of an api feature, or a pass-through if disabled."""
    if settings.api_server.is_disabled(feature.key):
        logger.info(f"Disable {feature.name}")
        return passthrough()

    return api_server_entry(storage, build_api_server_config(feature, settings))


def similar_embeddings(storage: EntryStorage, settings: Settings) -> Stage:
    return feature_stage(storage, settings, SIMILAR_DETECTION)


def object_detection(storage: EntryStorage, settings: Settings) -> Stage:
    return feature_stage(storage, settings, OBJECT_DETECTION)


def face_detection(storage: EntryStorage, settings: Settings) -> Stage:
    return feature_stage(storage, settings, FACE_DETECTION)


def log_public_api_privacy_hint(settings: Settings) -> Stage:
    """Log where previews are sent to and return a pass-through stage.

    Warns when the public api server is used, since previews leave the local
    network in that case.
    """
    api_server = settings.api_server
    if api_server.url.startswith(PUBLIC_API_SERVER):
        logger.warning(
            f"You are using the public api server {api_server.url}. "
            f"Please read its documentation at {DOCUMENTATION_URL} for privacy concerns"
        )
    else:
        logger.debug(f"Use api server {api_server.url}")
    logger.debug(
        f"Use api server with {api_server.concurrent} concurrent connections "
        f"and timeout of {api_server.timeout}s"
    )
    return passthrough()
