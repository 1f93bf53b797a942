from __future__ import annotations

import hashlib
import os
import sys
from pathlib import Path
from urllib.parse import quote

import pytest

from app.schemas.config import ManifestSettings


def test_health(client) -> None:
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.text == "Terra File Server OK"


def test_list_instances(client, storage: Path, make_tree) -> None:
    make_tree(storage / "survival", {"a.txt": "1"})
    make_tree(storage / "creative", {"b.txt": "2"})

    resp = client.get("/instances")

    assert resp.status_code == 200
    assert resp.json() == {"instances": ["creative", "survival"], "total": 2}


def test_manifest_shape(client, storage: Path, make_tree) -> None:
    make_tree(storage / "pack", {"mods/x.jar": "x", "config/y.json": "{}", ".DS_Store": "junk"})

    resp = client.get("/instances/pack/manifest")

    assert resp.status_code == 200
    assert resp.json() == {
        "instance": "pack",
        "algorithm": "sha1",
        "files": [
            {"path": "config/y.json", "hash": hashlib.sha1(b"{}").hexdigest()},
            {"path": "mods/x.jar", "hash": hashlib.sha1(b"x").hexdigest()},
        ],
        "total_files": 2,
        "total_size": None,
    }


@pytest.mark.parametrize(
    "settings",
    [ManifestSettings(include_size=True, include_modified_at=True)],
)
def test_manifest_with_optional_fields(client, storage: Path, make_tree) -> None:
    make_tree(storage / "pack", {"a.txt": "hello"})

    body = client.get("/instances/pack/manifest").json()

    assert body["total_size"] == 5
    assert body["files"][0]["size"] == 5
    assert "modifiedAt" in body["files"][0]


def test_manifest_with_download_urls(client, storage: Path, make_tree) -> None:
    make_tree(storage / "pack", {"mods/my mod.jar": "x"})

    body = client.get("/instances/pack/manifest", params={"urls": "true"}).json()
    url = body["files"][0]["url"]

    assert url == "http://testserver/files/pack/mods/my%20mod.jar"
    download = client.get(url)
    assert download.status_code == 200
    assert download.content == b"x"


def test_manifest_for_missing_instance(client) -> None:
    resp = client.get("/instances/ghost/manifest")

    assert resp.status_code == 404
    assert resp.json()["instance"] == "ghost"
    assert resp.json()["error"] == "NotFound"


def test_manifest_for_invalid_name(client) -> None:
    resp = client.get("/instances/.hidden/manifest")

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidInstanceName"


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX symlinks")
def test_manifest_error_body_hides_absolute_paths(client, storage: Path, make_tree) -> None:
    root = make_tree(storage / "pack", {"a.txt": "hi"})
    os.symlink(root / "a.txt", root / "link.txt")

    resp = client.get("/instances/pack/manifest")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "InvalidEntry"
    assert str(storage) not in body["detail"]
    assert "Traceback" not in resp.text


def test_manifest_diff(client, storage: Path, make_tree) -> None:
    make_tree(storage / "pack", {"a.txt": "hi", "b.txt": "bye"})

    resp = client.post(
        "/instances/pack/manifest/diff",
        json={
            "files": [
                {"path": "a.txt", "hash": hashlib.sha1(b"hi").hexdigest()},
                {"path": "b.txt", "hash": hashlib.sha1(b"old").hexdigest()},
                {"path": "c.txt", "hash": "00"},
            ]
        },
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "instance": "pack",
        "missing": [],
        "stale": ["b.txt"],
        "extra": ["c.txt"],
        "up_to_date": False,
    }


def test_download_file(client, storage: Path, make_tree) -> None:
    make_tree(storage / "pack", {"mods/x.jar": b"\x00\x01jar", ".secret": "s"})

    ok = client.get("/files/pack/mods/x.jar")
    hidden = client.get("/files/pack/.secret")
    missing = client.get("/files/pack/nope.txt")

    assert ok.status_code == 200
    assert ok.content == b"\x00\x01jar"
    assert hidden.status_code == 404
    assert missing.status_code == 404
    assert missing.json()["error"] == "NotFound"


@pytest.mark.parametrize("instance", ["pack#2", "my pack"])
def test_download_urls_quote_instance_name(client, storage: Path, make_tree, instance: str) -> None:
    make_tree(storage / instance, {"a.txt": "hi"})

    body = client.get(f"/instances/{quote(instance, safe='')}/manifest", params={"urls": "true"}).json()
    url = body["files"][0]["url"]

    assert url == f"http://testserver/files/{quote(instance, safe='')}/a.txt"
    download = client.get(url)
    assert download.status_code == 200
    assert download.content == b"hi"


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX symlinks")
def test_download_symlink_refused_under_default_policy(client, storage: Path, make_tree) -> None:
    root = make_tree(storage / "pack", {"a.txt": "hi"})
    os.symlink(root / "a.txt", root / "link.txt")

    resp = client.get("/files/pack/link.txt")

    assert resp.status_code == 404


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX symlinks")
@pytest.mark.parametrize("settings", [ManifestSettings(symlink_policy="follow")])
def test_download_symlink_served_under_follow_policy(client, storage: Path, make_tree) -> None:
    root = make_tree(storage / "pack", {"a.txt": "hi"})
    os.symlink(root / "a.txt", root / "link.txt")

    resp = client.get("/files/pack/link.txt")

    assert resp.status_code == 200
    assert resp.content == b"hi"
