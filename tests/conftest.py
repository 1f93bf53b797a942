from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_manifest_settings, get_public_base_url, get_storage_path
from app.main import app
from app.schemas.config import ManifestSettings


def write_tree(root: Path, files: dict[str, bytes | str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)
    return root


@pytest.fixture
def make_tree():
    return write_tree


@pytest.fixture
def storage(tmp_path: Path) -> Path:
    path = tmp_path / "files"
    path.mkdir()
    return path


@pytest.fixture
def settings() -> ManifestSettings:
    return ManifestSettings()


@pytest.fixture
def client(storage: Path, settings: ManifestSettings):
    app.dependency_overrides[get_storage_path] = lambda: storage
    app.dependency_overrides[get_manifest_settings] = lambda: settings
    app.dependency_overrides[get_public_base_url] = lambda: ""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
