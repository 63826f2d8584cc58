import base64

from src.catalog.core.services import ErrorReporter, InMemoryFileStore

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
JPEG_HEADER = bytes.fromhex("ffd8ffe000104a46494600010100000100010000")


def data_uri(data: bytes, subtype: str = "png") -> str:
    return f"data:image/{subtype};base64,{base64.b64encode(data).decode('ascii')}"


class RecordingErrorReporter(ErrorReporter):
    """Collects reports instead of logging them."""

    def __init__(self):
        self.reports: list[tuple[str, str, BaseException]] = []

    def report(self, operation: str, record_id: str, error: BaseException) -> None:
        self.reports.append((operation, record_id, error))

    @property
    def operations(self) -> list[tuple[str, str]]:
        return [(operation, record_id) for operation, record_id, _ in self.reports]


class SpyFileStore(InMemoryFileStore):
    """In-memory file store that records calls and can be told to fail."""

    def __init__(self, fail_writes: bool = False, fail_deletes: bool = False):
        super().__init__()
        self.calls: list[tuple[str, str]] = []
        self.fail_writes = fail_writes
        self.fail_deletes = fail_deletes

    async def write(self, name: str, data: bytes) -> None:
        self.calls.append(("write", name))
        if self.fail_writes:
            raise OSError(28, "No space left on device")
        await super().write(name, data)

    async def delete(self, name: str) -> None:
        self.calls.append(("delete", name))
        if self.fail_deletes:
            raise PermissionError(13, "Permission denied")
        await super().delete(name)
