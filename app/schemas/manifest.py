from datetime import datetime
from urllib.parse import quote
from typing import Optional, Tuple, List

from pydantic import BaseModel, ConfigDict, Field


class FileEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    hash: str
    size: Optional[int] = None
    modified_at: Optional[datetime] = None

    def to_payload(self, url: str | None = None) -> dict:
        data = {"path": self.path, "hash": self.hash}
        if self.size is not None:
            data["size"] = self.size
        if self.modified_at is not None:
            data["modifiedAt"] = self.modified_at.isoformat()
        if url is not None:
            data["url"] = url
        return data


class Manifest(BaseModel):
    """Snapshot of an instance's regular files, sorted by path."""
    model_config = ConfigDict(frozen=True)

    instance: str
    algorithm: str
    files: Tuple[FileEntry, ...] = ()

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int | None:
        # Chỉ có khi builder được cấu hình include_size
        if any(f.size is None for f in self.files):
            return None
        return sum(f.size for f in self.files)

    def to_payload(self, base_url: str | None = None) -> dict:
        """JSON body for the manifest endpoint; `base_url` adds a download URL per file."""
        files = []
        for entry in self.files:
            url = f"{base_url.rstrip('/')}/{quote(entry.path)}" if base_url else None
            files.append(entry.to_payload(url))
        return {
            "instance": self.instance,
            "algorithm": self.algorithm,
            "files": files,
            "total_files": self.total_files,
            "total_size": self.total_size,
        }


class ClientFile(BaseModel):
    path: str
    hash: str


class DiffRequest(BaseModel):
    files: List[ClientFile] = Field(default_factory=list)


class ManifestDiff(BaseModel):
    instance: str
    missing: List[str]
    stale: List[str]
    extra: List[str]

    @property
    def up_to_date(self) -> bool:
        return not (self.missing or self.stale or self.extra)

    def to_payload(self) -> dict:
        data = self.model_dump()
        data["up_to_date"] = self.up_to_date
        return data


class InstanceListResponse(BaseModel):
    instances: List[str]
    total: int
