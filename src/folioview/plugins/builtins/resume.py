"""Remember the last page read and reopen the book there."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ...errors import FolioviewError
from ...events import Events
from ..base import ReaderPlugin

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = Path.home() / ".folioview" / "resume.yaml"


class ResumePlugin(ReaderPlugin):
    """Persists the current index per book in a YAML state file.

    Options:
        state_file: Where resume positions are stored.
        key: Entry name in the state file (defaults to the book identifier).
    """

    name = "resume"
    default_options = {"enabled": True, "state_file": None, "key": None}

    def init(self) -> None:
        if not self.enabled:
            return
        self.viewer.on(Events.PAGE_CHANGED, self._on_page_changed)

    @property
    def state_file(self) -> Path:
        state_file = self.options.get("state_file")
        return Path(state_file).expanduser() if state_file else DEFAULT_STATE_FILE

    @property
    def key(self) -> str:
        key = self.options.get("key") or getattr(self.viewer.book, "identifier", None)
        return str(key or "default")

    def _on_page_changed(self, _viewer) -> None:
        # Positions reached while resolving the initial state are not reading
        if not self.viewer.init_complete:
            return
        self.update_resume_value(self.viewer.current_index())

    def get_resume_value(self) -> int | None:
        """Return the stored index for this book, or None."""
        value = self._read_state().get(self.key)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def update_resume_value(self, index: int) -> None:
        state = self._read_state()
        state[self.key] = int(index)
        path = self.state_file
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(yaml.safe_dump(state, default_flow_style=False))
        except OSError as e:
            raise FolioviewError(f"Cannot write resume state {path}: {e}") from e

    def _read_state(self) -> dict[str, Any]:
        path = self.state_file
        if not path.is_file():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            logger.warning("Ignoring unreadable resume state: %s", path)
            return {}
        return data if isinstance(data, dict) else {}
