from dotenv import load_dotenv
load_dotenv()

import os
from pathlib import Path

# Thư mục gốc chứa các instance (mỗi thư mục con là một instance)
STORAGE_PATH = Path(os.getenv("STORAGE_PATH", "files")).absolute()

HASH_ALGORITHM = os.getenv("HASH_ALGORITHM", "sha1")
HASH_CHUNK_SIZE = int(os.getenv("HASH_CHUNK_SIZE", "65536"))
MANIFEST_INCLUDE_SIZE = os.getenv("MANIFEST_INCLUDE_SIZE", "false").lower() in ("1", "true", "yes")
MANIFEST_INCLUDE_MTIME = os.getenv("MANIFEST_INCLUDE_MTIME", "false").lower() in ("1", "true", "yes")
SYMLINK_POLICY = os.getenv("SYMLINK_POLICY", "reject")

# Dùng khi server đứng sau tunnel/proxy và request.base_url không phải địa chỉ public
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
