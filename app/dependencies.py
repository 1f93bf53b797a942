from pathlib import Path

from app.core import config
from app.schemas.config import ManifestSettings


def get_storage_path() -> Path:
  return config.STORAGE_PATH


def get_manifest_settings() -> ManifestSettings:
  return ManifestSettings(
    hash_algorithm=config.HASH_ALGORITHM,
    include_size=config.MANIFEST_INCLUDE_SIZE,
    include_modified_at=config.MANIFEST_INCLUDE_MTIME,
    symlink_policy=config.SYMLINK_POLICY,
    chunk_size=config.HASH_CHUNK_SIZE,
  )


def get_public_base_url() -> str:
  return config.PUBLIC_BASE_URL
