"""Local UI preferences (chart visibility). Kept out of the URL on purpose."""

import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

DEFAULTS = {"show_chart": True}


class Preferences:
    def __init__(self, path: str | None):
        self._path = os.path.expanduser(path) if path else None
        self._values = dict(DEFAULTS)
        self.load()

    @property
    def show_chart(self) -> bool:
        return bool(self._values["show_chart"])

    @show_chart.setter
    def show_chart(self, value: bool) -> None:
        self._values["show_chart"] = bool(value)
        self.save()

    def load(self) -> None:
        if not self._path or not os.path.exists(self._path):
            return
        try:
            with open(self._path, "r") as f:
                stored = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preferences at %s: %s", self._path, e)
            return
        if isinstance(stored, dict):
            self._values.update({k: stored[k] for k in DEFAULTS if k in stored})

    def save(self) -> None:
        """Write atomically: temp file in the same directory, then replace."""
        if not self._path:
            return
        directory = os.path.dirname(self._path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=directory)
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._values, f, indent=2)
            os.replace(tmp, self._path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
