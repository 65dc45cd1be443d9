"""Configuration loading and construction of providers, store and gateways."""

from __future__ import annotations

import json
import logging
import os

from config.settings import DEFAULT_DB_FILENAME, LYRICS_PROVIDER_ORDER, METADATA_PROVIDER_ORDER
from db.library import SQLiteLibrary
from media.fingerprint import FpcalcFingerprinter
from metadata.providers import (
    AcoustIDClient,
    DeezerMetadataProvider,
    DiscogsMetadataProvider,
    GeniusLyricsProvider,
    LrclibLyricsProvider,
    MockMetadataProvider,
    MusicBrainzMetadataProvider,
)

logger = logging.getLogger(__name__)

_ENV_OVERRIDES = (
    ("DISCOGS_TOKEN", ("metadata", "providers", "discogs", "token")),
    ("GENIUS_ACCESS_TOKEN", ("lyrics", "providers", "genius", "access_token")),
    ("ACOUSTID_CLIENT_KEY", ("metadata", "providers", "acoustid", "client_key")),
    ("RECONCILER_DB_PATH", ("database", "path")),
)


def load_config(path):
    with open(path, "r") as f:
        config = json.load(f)
    if isinstance(config, dict):
        apply_env_overrides(config)
    return config


def apply_env_overrides(config):
    """Overlay secrets and the database path from the environment in place."""
    for env_key, keys in _ENV_OVERRIDES:
        value = os.environ.get(env_key)
        if not value:
            continue
        node = config
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[keys[-1]] = value
    return config


def _section(config, *keys):
    node = config
    for key in keys:
        if not isinstance(node, dict):
            return {}
        node = node.get(key)
    return node if isinstance(node, dict) else {}


def _validate_providers(config, section, known, errors):
    providers = _section(config, section).get("providers")
    if providers is None:
        return
    if not isinstance(providers, dict):
        errors.append(f"{section}.providers must be an object")
        return
    for name, entry in providers.items():
        if name not in known:
            errors.append(f"{section}.providers.{name} is not a known provider")
            continue
        if not isinstance(entry, dict):
            errors.append(f"{section}.providers.{name} must be an object")
            continue
        enabled = entry.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            errors.append(f"{section}.providers.{name}.enabled must be true or false")
        for secret in ("token", "access_token", "client_key"):
            value = entry.get(secret)
            if value is not None and not isinstance(value, str):
                errors.append(f"{section}.providers.{name}.{secret} must be a string")


def validate_config(config):
    errors = []
    if not isinstance(config, dict):
        return ["config must be a JSON object"]

    for section in ("metadata", "lyrics", "database", "fingerprint"):
        value = config.get(section)
        if value is not None and not isinstance(value, dict):
            errors.append(f"{section} must be an object")

    _validate_providers(config, "metadata", METADATA_PROVIDER_ORDER + ("acoustid",), errors)
    _validate_providers(config, "lyrics", LYRICS_PROVIDER_ORDER, errors)

    db_path = _section(config, "database").get("path")
    if db_path is not None and (not isinstance(db_path, str) or not db_path.strip()):
        errors.append("database.path must be a non-empty string")

    fpcalc_path = _section(config, "fingerprint").get("fpcalc_path")
    if fpcalc_path is not None and (not isinstance(fpcalc_path, str) or not fpcalc_path.strip()):
        errors.append("fingerprint.fpcalc_path must be a non-empty string")

    return errors


def _provider_settings(config, section, name):
    entry = _section(config, section, "providers", name)
    return bool(entry.get("enabled", False)), entry


def build_metadata_providers(config):
    """Instantiate every metadata provider in fixed registration order.

    Disabled providers are still built so callers can report them; the
    orchestrator skips them.
    """
    providers = []
    for name in METADATA_PROVIDER_ORDER:
        enabled, entry = _provider_settings(config, "metadata", name)
        if name == "musicbrainz":
            providers.append(MusicBrainzMetadataProvider(enabled=enabled))
        elif name == "deezer":
            providers.append(DeezerMetadataProvider(enabled=enabled))
        elif name == "discogs":
            token = entry.get("token") or None
            if enabled and not token:
                logger.warning("discogs_token_missing provider=discogs")
            providers.append(DiscogsMetadataProvider(enabled=enabled, token=token))
        elif name == "mock" and "mock" in _section(config, "metadata", "providers"):
            providers.append(MockMetadataProvider(enabled=enabled))
    return providers


def build_lyrics_providers(config):
    providers = []
    for name in LYRICS_PROVIDER_ORDER:
        enabled, entry = _provider_settings(config, "lyrics", name)
        if name == "lrclib":
            providers.append(LrclibLyricsProvider(enabled=enabled))
        elif name == "genius":
            providers.append(GeniusLyricsProvider(enabled=enabled, access_token=entry.get("access_token") or None))
    return providers


def build_library(config):
    path = _section(config, "database").get("path") or DEFAULT_DB_FILENAME
    return SQLiteLibrary(path)


def build_fingerprinter(config):
    return FpcalcFingerprinter(_section(config, "fingerprint").get("fpcalc_path") or "fpcalc")


def build_acoustid_client(config):
    enabled, entry = _provider_settings(config, "metadata", "acoustid")
    return AcoustIDClient(enabled=enabled, client_key=entry.get("client_key") or None)


def setup_logging(log_dir, *, level=logging.INFO):
    """Attach a single file handler for ``reconciler.log`` to the root logger."""
    os.makedirs(log_dir, exist_ok=True)
    root = logging.getLogger("")
    log_path = os.path.join(log_dir, "reconciler.log")
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            if os.path.abspath(getattr(handler, "baseFilename", "")) == os.path.abspath(log_path):
                return handler
    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    file_handler.setLevel(level)
    root.addHandler(file_handler)
    return file_handler
