from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.core.errors import NotFound
from app.dependencies import get_manifest_settings, get_storage_path
from app.schemas.config import ManifestSettings, SymlinkPolicy
from app.services import instance_service

router = APIRouter()


@router.get("/{instance}/{relative_path:path}")
async def download_file(
  instance: str,
  relative_path: str,
  storage_path: Path = Depends(get_storage_path),
  settings: ManifestSettings = Depends(get_manifest_settings),
):
  """
  Tải một file của instance.
  Auth: Public (launcher tải trước khi chạy game).
  """
  absolute_path = instance_service.resolve_instance_file(
    instance,
    relative_path,
    storage_path,
    follow_symlinks=settings.symlink_policy == SymlinkPolicy.follow,
  )
  if absolute_path is None:
    raise NotFound("File not found", instance)
  return FileResponse(absolute_path, media_type="application/octet-stream")
