import hashlib
from enum import Enum

from pydantic import BaseModel, Field, field_validator

# Thuật toán yếu hơn SHA-1 (md5, ...) không được chấp nhận cho manifest
ALLOWED_ALGORITHMS = {
    "sha1",
    "sha224",
    "sha256",
    "sha384",
    "sha512",
    "sha3_224",
    "sha3_256",
    "sha3_384",
    "sha3_512",
    "blake2b",
    "blake2s",
}


class SymlinkPolicy(str, Enum):
    reject = "reject"
    skip = "skip"
    follow = "follow"


class ManifestSettings(BaseModel):
    """Manifest builder configuration, built from environment in app.dependencies"""
    hash_algorithm: str = "sha1"
    include_size: bool = False
    include_modified_at: bool = False
    symlink_policy: SymlinkPolicy = SymlinkPolicy.reject
    chunk_size: int = Field(default=65536, gt=0)

    @field_validator("hash_algorithm")
    @classmethod
    def check_algorithm(cls, value: str) -> str:
        # "SHA-256" -> "sha256", "SHA3-256" -> "sha3_256"
        value = value.lower()
        if value.startswith("sha3"):
            value = value.replace("-", "_")
        else:
            value = value.replace("-", "")
        if value not in ALLOWED_ALGORITHMS or value not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm '{value}'")
        return value
