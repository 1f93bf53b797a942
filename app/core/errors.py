"""
Typed failures raised by the manifest builder and the instance service.

Each class carries the `kind` reported to clients and the HTTP status the
routers answer with. Messages only ever mention instance-relative paths.
"""


class ManifestError(Exception):
    kind = "IOFailure"
    status_code = 500

    def __init__(self, message: str, instance: str | None = None, path: str | None = None):
        super().__init__(message)
        self.message = message
        self.instance = instance
        self.path = path

    def to_payload(self) -> dict:
        return {
            "instance": self.instance,
            "error": self.kind,
            "detail": self.message,
        }


class NotFound(ManifestError):
    """Instance root, or a path below it, does not exist (or vanished mid-walk)."""
    kind = "NotFound"
    status_code = 404


class AccessDenied(ManifestError):
    """A file or directory could not be opened for reading."""
    kind = "AccessDenied"
    status_code = 500


class InvalidEntry(ManifestError):
    """Unsupported filesystem object: device, fifo, socket or rejected symlink."""
    kind = "InvalidEntry"
    status_code = 500


class IOFailure(ManifestError):
    kind = "IOFailure"
    status_code = 500


class Cancelled(ManifestError):
    """The caller asked the build to stop between two file visits."""
    kind = "Cancelled"
    status_code = 503


class InvalidInstanceName(ManifestError):
    kind = "InvalidInstanceName"
    status_code = 400
