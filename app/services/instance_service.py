from pathlib import Path

from app.core.errors import InvalidInstanceName


def validate_instance_name(name: str) -> str:
  """Kiểm tra tên instance, chặn path traversal

  Args:
      name (str): Tên instance do client gửi lên

  Raises:
      InvalidInstanceName: Tên rỗng, ẩn, hoặc chứa ký tự đường dẫn

  Returns:
      str: Tên hợp lệ
  """
  if not name or name.startswith(".") or ".." in name:
    raise InvalidInstanceName("Invalid instance name", name)
  if any(c in name for c in ("/", "\\", "\x00")):
    raise InvalidInstanceName("Invalid instance name", name)
  return name


def resolve_instance_root(name: str, storage_path: Path) -> Path:
  """Đường dẫn tuyệt đối của instance (không kiểm tra tồn tại)

  Args:
      name (str): Tên instance
      storage_path (Path): Thư mục chứa các instance

  Returns:
      Path: Thư mục gốc của instance
  """
  validate_instance_name(name)
  return Path(storage_path).absolute() / name


def list_instances(storage_path: Path) -> list[str]:
  """Danh sách tên các instance đang lưu trữ

  Args:
      storage_path (Path): Thư mục chứa các instance

  Returns:
      list[str]: Tên instance, đã sắp xếp
  """
  storage_path = Path(storage_path)
  if not storage_path.is_dir():
    return []
  return sorted(
    p.name for p in storage_path.iterdir()
    if p.is_dir() and not p.name.startswith(".")
  )


def resolve_instance_file(
  name: str,
  relative_path: str,
  storage_path: Path,
  follow_symlinks: bool = False,
) -> Path | None:
  """Đường dẫn tuyệt đối của một file trong instance để tải về

  Args:
      name (str): Tên instance
      relative_path (str): Đường dẫn tương đối, phân cách bằng "/"
      storage_path (Path): Thư mục chứa các instance
      follow_symlinks (bool): Chỉ True khi SYMLINK_POLICY là "follow",
        để chỉ những file có trong manifest mới tải được

  Returns:
      Path | None: None nếu file không tồn tại, bị ẩn, là symlink (khi không follow)
      hoặc nằm ngoài instance
  """
  root = resolve_instance_root(name, storage_path)
  parts = [p for p in relative_path.replace("\\", "/").split("/") if p]
  if not parts or any(p.startswith(".") for p in parts):
    return None

  target_path = root.joinpath(*parts)

  if not follow_symlinks:
    current = root
    for part in parts:
      current = current / part
      if current.is_symlink():
        return None

  # Security check to prevent path traversal (kể cả qua symlink)
  try:
    target_path.resolve().relative_to(root.resolve())
  except (ValueError, OSError):
    return None

  if target_path.is_file():
    return target_path
  return None
