"""Resolution of source file names printed by test executables."""

import logging
import os
import re
from pathlib import Path

log = logging.getLogger(__name__)

WINDOWS_ABSOLUTE_PATH = re.compile(r"^[a-zA-Z]:[\\/]")


class SourceFileFinder:
    """Finds source files below a base directory by name."""

    def __init__(self, base_dir: str) -> None:
        self.base_dir = base_dir
        self._index: dict[str, list[str]] | None = None

    def find(self, file_name: str) -> str | None:
        """Return the full path for a file name from test output, if known."""
        if WINDOWS_ABSOLUTE_PATH.match(file_name) or os.path.isabs(file_name):
            return file_name
        if not self.base_dir:
            return None

        candidate = Path(self.base_dir) / file_name
        if candidate.is_file():
            return str(candidate)

        matches = self._files_by_name().get(Path(file_name).name.lower(), [])
        if len(matches) > 1:
            log.debug("Ambiguous source file %s, using %s", file_name, matches[0])
        return matches[0] if matches else None

    def _files_by_name(self) -> dict[str, list[str]]:
        if self._index is None:
            index: dict[str, list[str]] = {}
            for root, _dirs, files in os.walk(self.base_dir):
                for name in files:
                    index.setdefault(name.lower(), []).append(os.path.join(root, name))
            self._index = {name: sorted(paths) for name, paths in index.items()}
        return self._index
