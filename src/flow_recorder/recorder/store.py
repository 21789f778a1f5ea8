"""
Script Store - One script file per recording, keyed by recording id.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Union

from flow_recorder.exceptions.storage import RecordingNotFoundError, StorageError
from flow_recorder.interfaces.storage import IScriptStore

logger = logging.getLogger(__name__)


class ScriptStore(IScriptStore):
    """
    Filesystem-backed script store.

    Each write replaces the whole file through a temporary file and an
    atomic rename, so readers never observe a half-written script.

    Example:
        >>> store = ScriptStore("./recordings")
        >>> store.write("4d6870eb-...", script)
        >>> store.list()
        ['4d6870eb-....spec.ts']
    """

    def __init__(self, directory: Union[str, Path], suffix: str = ".spec.ts"):
        """
        Initialize the store, creating the directory if needed.

        Args:
            directory: Where scripts live
            suffix: File suffix appended to recording ids
        """
        self.directory = Path(directory)
        self.suffix = suffix
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, recording_id: str) -> Path:
        """Path of the script for a recording id."""
        if not recording_id or Path(recording_id).name != recording_id or recording_id in (".", ".."):
            raise StorageError(f"Invalid recording id: {recording_id!r}")
        return self.directory / f"{recording_id}{self.suffix}"

    def write(self, recording_id: str, text: str) -> None:
        path = self.path_for(recording_id)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=self.suffix)
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                    f.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write script: {e}", path=str(path))
        logger.debug(f"Wrote script {path}")

    def read(self, recording_id: str) -> str:
        path = self.path_for(recording_id)
        if not path.exists():
            raise RecordingNotFoundError(recording_id)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read script: {e}", path=str(path))

    def delete(self, recording_id: str) -> None:
        path = self.path_for(recording_id)
        if not path.exists():
            raise RecordingNotFoundError(recording_id)
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete script: {e}", path=str(path))
        logger.debug(f"Deleted script {path}")

    def list(self) -> List[str]:
        return sorted(
            p.name
            for p in self.directory.iterdir()
            if p.is_file() and p.name.endswith(self.suffix) and not p.name.startswith(".tmp-")
        )
