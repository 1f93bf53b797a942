"""
Diff Service - Compare the file list reported by a launcher against a fresh manifest
"""

from typing import Dict, Iterable, Mapping

from app.schemas.manifest import ClientFile, Manifest, ManifestDiff


def client_files_to_map(files: Iterable[ClientFile]) -> Dict[str, str]:
    # Một path xuất hiện nhiều lần: giữ giá trị cuối
    return {f.path.lstrip("/").replace("\\", "/"): f.hash for f in files}


def diff_manifest(manifest: Manifest, client_files: Mapping[str, str]) -> ManifestDiff:
    """
    Classify what the client must do to match the manifest.

    missing: on the server, not on the client -> download
    stale:   on both, hash differs (changed or corrupted) -> re-download
    extra:   on the client only -> client may prune
    """
    missing = []
    stale = []
    server_paths = set()

    for entry in manifest.files:
        server_paths.add(entry.path)
        client_hash = client_files.get(entry.path)
        if client_hash is None:
            missing.append(entry.path)
        elif client_hash.lower() != entry.hash:
            stale.append(entry.path)

    extra = sorted(p for p in client_files if p not in server_paths)

    return ManifestDiff(
        instance=manifest.instance,
        missing=missing,
        stale=stale,
        extra=extra,
    )
