"""
In-memory zip/jar archive.

The translation pipeline only needs to list, read and write entries and to
produce the final zip bytes; everything else about the container stays here.
"""

import io
import zipfile
from typing import Dict, List, Optional, Union

from jarloc.ai.exceptions import ArchiveError
from jarloc.logger import get_logger

logger = get_logger(__name__)


class ZipArchive:
    """Readable/writable view over zip content held in memory."""

    def __init__(self, data: Optional[bytes] = None, name: str = ""):
        self.name = name
        self._source: Optional[zipfile.ZipFile] = None
        self._written: Dict[str, bytes] = {}

        if data is not None:
            try:
                self._source = zipfile.ZipFile(io.BytesIO(data))
            except (zipfile.BadZipFile, OSError) as e:
                raise ArchiveError(
                    f"{name or 'File'} is not a valid JAR/ZIP archive",
                    code="invalid_archive",
                    details={"name": name, "reason": str(e)},
                )

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "") -> "ZipArchive":
        return cls(data, name=name)

    def list_entries(self) -> List[str]:
        """All file paths (directories excluded), source entries first."""
        entries: List[str] = []
        if self._source is not None:
            entries = [info.filename for info in self._source.infolist() if not info.is_dir()]
        seen = set(entries)
        entries.extend(path for path in self._written if path not in seen)
        return entries

    def __contains__(self, path: str) -> bool:
        if path in self._written:
            return True
        if self._source is None:
            return False
        try:
            self._source.getinfo(path)
            return True
        except KeyError:
            return False

    def read_bytes(self, path: str) -> bytes:
        if path in self._written:
            return self._written[path]
        if self._source is None:
            raise KeyError(path)
        try:
            return self._source.read(path)
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ArchiveError(f"Could not read {path} from {self.name or 'archive'}: {e}")

    def read_entry(self, path: str) -> str:
        """Read an entry as text (UTF-8, BOM tolerated)."""
        return self.read_bytes(path).decode("utf-8-sig", errors="replace")

    def write_entry(self, path: str, content: Union[str, bytes]) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._written[path] = content

    def generate(self) -> bytes:
        """Produce zip bytes holding every entry; written entries win."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as out:
            for path in self.list_entries():
                out.writestr(path, self.read_bytes(path))
        logger.debug(f"Generated archive with {len(self.list_entries())} entries")
        return buffer.getvalue()

    def close(self) -> None:
        if self._source is not None:
            self._source.close()
            self._source = None

    def __enter__(self) -> "ZipArchive":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
