import signal
import threading
from types import FrameType

from moderation.config.settings import Settings
from moderation.database.connection import close_pool, init_pool
from moderation.logging.logger import Log
from moderation.queue.moderation_queue import build_queue


def _needs_database(settings: Settings) -> bool:
    return (
        settings.queue_backend.lower() == "postgres"
        or settings.decision_sink.lower() == "database"
    )


def main() -> None:
    """Entry point: initialize pool -> build queue -> run workers until signalled."""
    settings = Settings()
    Log.configure(settings.log_level)
    if _needs_database(settings):
        init_pool(settings)

    shutdown = threading.Event()

    def _on_signal(signum: int, _frame: FrameType | None) -> None:
        Log.info(f"Received signal {signum}, shutting down gracefully")
        shutdown.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    try:
        queue = build_queue(settings)
        queue.init()
        try:
            shutdown.wait()
        finally:
            queue.close()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
