"""Process-wide toxicity model handle with a single-flight lazy load."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from moderation.logging.logger import Log
from moderation.toxicity.base import BaseToxicityClassifier


class HandleState(Enum):
    UNLOADED = "unloaded"
    READY = "ready"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class HandleSnapshot:
    """Tagged handle state. READY carries a classifier, UNAVAILABLE an error."""

    state: HandleState
    classifier: BaseToxicityClassifier | None = None
    error: str | None = None


_UNLOADED = HandleSnapshot(state=HandleState.UNLOADED)


class ModelHandle:
    """Lazily loads a classifier once and shares it read-only across workers.

    The first caller performs the load while concurrent callers block on the
    same lock and then observe its outcome. A failed load is remembered:
    the handle stays UNAVAILABLE until reload() is called explicitly.
    """

    def __init__(self, loader: Callable[[], BaseToxicityClassifier]) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._snapshot = _UNLOADED

    @property
    def state(self) -> HandleState:
        return self._snapshot.state

    def get(self) -> HandleSnapshot:
        snapshot = self._snapshot
        if snapshot.state is not HandleState.UNLOADED:
            return snapshot
        with self._lock:
            if self._snapshot.state is HandleState.UNLOADED:
                self._snapshot = self._load()
            return self._snapshot

    def reload(self) -> HandleSnapshot:
        """Discard the current state and load again."""
        with self._lock:
            Log.info("Reloading toxicity model")
            self._snapshot = self._load()
            return self._snapshot

    def _load(self) -> HandleSnapshot:
        Log.info("Loading toxicity model...")
        try:
            classifier = self._loader()
        except Exception as exc:
            Log.error(f"Failed to load toxicity model, AI scoring disabled: {exc}")
            return HandleSnapshot(state=HandleState.UNAVAILABLE, error=str(exc))
        Log.info(f"Toxicity model loaded: {classifier.version}")
        return HandleSnapshot(state=HandleState.READY, classifier=classifier)
