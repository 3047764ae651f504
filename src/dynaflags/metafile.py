"""Metafile archiving.

Writes a time stamped archive of JSON metafiles (CLI config, parsed flags,
command data) so a run can be inspected or attached to an issue report.
"""

from __future__ import annotations

import io
import json
import logging
import os
import tarfile
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetaFileEntry:
    """Archive ``source[key]`` as ``filename``."""

    key: str
    filename: str


def default_compress_format() -> str:
    return "zip" if os.name == "nt" else "tar.gz"


def archive_basename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"logs_{now.strftime('%Y-%m-%dT%H:%M:%S')}".replace(":", "_")


def _lookup(source: Any, key: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


class MetaFileHandler:
    """Writes out metafiles of a command into a compressed archive."""

    @staticmethod
    def write_metafiles(
        archive_dir: Path,
        entries: Sequence[Any],
        source: Any,
        compress_format: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Path]:
        """Write one archive holding a JSON file per entry.

        Entries may be MetaFileEntry instances or mappings with ``key`` and
        ``filename``. Malformed entries and keys missing from ``source`` are
        skipped with a warning.

        Returns:
            Path of the written archive, or None when nothing was written.
        """
        if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
            logger.warning("Could not write metafile logs as metafile entries is not a sequence.")
            return None

        files = {}
        for index, raw in enumerate(entries):
            if isinstance(raw, Mapping):
                key, filename = raw.get("key"), raw.get("filename")
            elif isinstance(raw, MetaFileEntry):
                key, filename = raw.key, raw.filename
            else:
                logger.warning("Skipping metafile entry %d as it is not an entry or mapping.", index)
                continue

            if not isinstance(key, str) or not isinstance(filename, str):
                logger.warning("Skipping metafile entry %d as it is missing 'key' or 'filename'.", index)
                continue

            value = _lookup(source, key)
            if value is None:
                logger.warning("Skipping metafile entry %d as key '%s' not found.", index, key)
                continue

            files[filename] = json.dumps(value, indent=3, default=str)

        if not files:
            return None

        compress_format = compress_format or default_compress_format()
        if compress_format not in ("zip", "tar.gz"):
            raise ValueError(f"Unsupported compress format: {compress_format}")

        archive_dir = Path(archive_dir)
        archive_dir.mkdir(parents=True, exist_ok=True)
        archive_path = archive_dir / f"{archive_basename(now)}.{compress_format}"

        logger.info("Writing metafile logs to: %s", archive_path)

        if compress_format == "zip":
            with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for filename, data in files.items():
                    zf.writestr(filename, data)
        else:
            with tarfile.open(archive_path, "w:gz") as tf:
                for filename, data in files.items():
                    payload = data.encode("utf-8")
                    info = tarfile.TarInfo(name=filename)
                    info.size = len(payload)
                    info.mtime = int((now or datetime.now()).timestamp())
                    tf.addfile(info, io.BytesIO(payload))

        return archive_path


__all__ = ["MetaFileEntry", "MetaFileHandler", "archive_basename", "default_compress_format"]
