"""
Unit tests for centralized storage config defaults.

Behavior (BDD):
    Given no relevant env vars are set,
    When calling the getters,
    Then the art bucket defaults to "arts" and limits use their defaults.

    Given env vars override values,
    When calling the getters,
    Then they reflect the (clamped) override values.
"""
from __future__ import annotations

import importlib
from pathlib import Path


def _reload_config():
    if 'backend.storage.config' in importlib.sys.modules:
        importlib.invalidate_caches()
        importlib.reload(importlib.import_module('backend.storage.config'))
    return importlib.import_module('backend.storage.config')


def test_defaults_without_env(monkeypatch):
    monkeypatch.delenv('ART_STORAGE_BUCKET', raising=False)
    monkeypatch.delenv('ART_MAX_UPLOAD_BYTES', raising=False)
    monkeypatch.delenv('ART_UPLOAD_TIMEOUT_SECONDS', raising=False)

    cfg = _reload_config()
    assert getattr(cfg, 'ART_BUCKET_DEFAULT', None) == 'arts'
    assert cfg.get_art_bucket() == 'arts'
    assert cfg.get_art_max_upload_bytes() == 10 * 1024 * 1024
    assert cfg.get_upload_timeout_seconds() == 60.0


def test_env_overrides(monkeypatch):
    monkeypatch.setenv('ART_STORAGE_BUCKET', 'arts-dev')
    monkeypatch.setenv('ART_MAX_UPLOAD_BYTES', '2048')
    monkeypatch.setenv('ART_UPLOAD_TIMEOUT_SECONDS', '5')
    cfg = _reload_config()
    assert cfg.get_art_bucket() == 'arts-dev'
    assert cfg.get_art_max_upload_bytes() == 2048
    assert cfg.get_upload_timeout_seconds() == 5.0


def test_upload_limit_is_clamped_and_invalid_values_fall_back(monkeypatch):
    cfg = _reload_config()
    monkeypatch.setenv('ART_MAX_UPLOAD_BYTES', str(500 * 1024 * 1024))
    assert cfg.get_art_max_upload_bytes() == 50 * 1024 * 1024
    monkeypatch.setenv('ART_MAX_UPLOAD_BYTES', 'lots')
    assert cfg.get_art_max_upload_bytes() == 10 * 1024 * 1024
    monkeypatch.setenv('ART_MAX_UPLOAD_BYTES', '-1')
    assert cfg.get_art_max_upload_bytes() == 10 * 1024 * 1024


def test_public_base_url_falls_back_to_supabase_url(monkeypatch):
    cfg = _reload_config()
    monkeypatch.delenv('ART_PUBLIC_BASE_URL', raising=False)
    monkeypatch.setenv('SUPABASE_URL', 'http://127.0.0.1:54321/')
    assert cfg.get_public_base_url() == 'http://127.0.0.1:54321'
    monkeypatch.setenv('ART_PUBLIC_BASE_URL', 'https://cdn.example.org')
    assert cfg.get_public_base_url() == 'https://cdn.example.org'


def test_staging_dir_is_created(monkeypatch, tmp_path: Path):
    cfg = _reload_config()
    target = tmp_path / 'nested' / 'staging'
    monkeypatch.setenv('ART_STAGING_DIR', str(target))
    assert cfg.get_staging_dir() == target
    assert target.is_dir()
