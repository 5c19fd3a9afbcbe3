"""Repository base class used by all concrete repositories."""
import json
import logging
import os
import tempfile
from typing import Any, Dict


class BaseRepository:
    """Provides JSON-backed persistence for a single data file.

    Sub-classes call :meth:`_load` to read initial data from disk and
    :meth:`_save` to atomically persist data back.  All repositories keep an
    in-memory copy in ``self.data``; callers mutate that copy and then call
    :meth:`save` to persist the change.

    Every record handled here is a top-level mapping.  A missing file, a
    corrupt file or a file whose top-level value is not a mapping all load as
    an empty mapping; the last two are logged as warnings.  Write faults are
    logged and never propagate to callers.
    """

    def __init__(self, file_path: str) -> None:
        self._path = file_path
        self._log = logging.getLogger(f'santa.repository.{type(self).__name__}')
        self.data: Dict[str, Any] = self._load({})

    def _load(self, default: Dict[str, Any]) -> Dict[str, Any]:
        """Load JSON from *self._path*, returning *default* on missing/corrupt file."""
        if os.path.exists(self._path):
            try:
                with open(self._path, 'r') as fh:
                    loaded = json.load(fh)
            except (json.JSONDecodeError, IOError) as exc:
                self._log.warning("Could not load %s: %s", self._path, exc)
                return default
            if isinstance(loaded, dict):
                return loaded
            self._log.warning("Ignoring %s: expected a JSON object, got %s",
                              self._path, type(loaded).__name__)
        return default

    def _save(self, data: Any) -> None:
        """Atomically write *data* as JSON to *self._path*."""
        dir_name = os.path.dirname(os.path.abspath(self._path))
        try:
            os.makedirs(dir_name, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix='.tmp')
        except OSError as exc:
            self._log.error("Could not persist %s: %s", self._path, exc)
            return
        try:
            with os.fdopen(fd, 'w') as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            self._log.error("Could not persist %s: %s", self._path, exc)

    # ------------------------------------------------------------------
    # Shared mapping helpers
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Replace the in-memory copy with whatever is on disk now."""
        self.data = self._load({})

    def delete(self, key: str) -> bool:
        """Remove *key*.  Returns ``True`` if it existed."""
        if key not in self.data:
            return False
        del self.data[key]
        self.save()
        return True

    def save(self) -> None:
        """Persist the current in-memory data to disk."""
        self._save(self.data)
