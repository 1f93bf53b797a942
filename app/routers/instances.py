from pathlib import Path
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request

from app.dependencies import get_manifest_settings, get_public_base_url, get_storage_path
from app.schemas.config import ManifestSettings
from app.schemas.manifest import DiffRequest, InstanceListResponse
from app.services import diff_service, instance_service, manifest_service

router = APIRouter()


@router.get("", response_model=InstanceListResponse)
def list_instances(storage_path: Path = Depends(get_storage_path)):
  """Danh sách các instance có thể tải về"""
  instances = instance_service.list_instances(storage_path)
  return InstanceListResponse(instances=instances, total=len(instances))


@router.get("/{instance}/manifest")
async def get_manifest(
  instance: str,
  request: Request,
  urls: bool = False,
  storage_path: Path = Depends(get_storage_path),
  settings: ManifestSettings = Depends(get_manifest_settings),
  public_base_url: str = Depends(get_public_base_url),
):
  """
  Danh sách file của instance kèm hash.

  Launcher dùng API này để biết file nào thiếu, cũ hoặc hỏng trước khi tải.
  Với `?urls=true` mỗi file có thêm "url" để tải trực tiếp.
  """
  root = instance_service.resolve_instance_root(instance, storage_path)
  manifest = await manifest_service.build_manifest_async(instance, root, settings)

  base_url = None
  if urls:
    base = public_base_url or str(request.base_url)
    base_url = f"{base.rstrip('/')}/files/{quote(instance, safe='')}"
  return manifest.to_payload(base_url)


@router.post("/{instance}/manifest/diff")
async def diff_manifest(
  instance: str,
  payload: DiffRequest,
  storage_path: Path = Depends(get_storage_path),
  settings: ManifestSettings = Depends(get_manifest_settings),
):
  """So sánh danh sách file của client với manifest hiện tại"""
  root = instance_service.resolve_instance_root(instance, storage_path)
  manifest = await manifest_service.build_manifest_async(instance, root, settings)
  client_files = diff_service.client_files_to_map(payload.files)
  return diff_service.diff_manifest(manifest, client_files).to_payload()
