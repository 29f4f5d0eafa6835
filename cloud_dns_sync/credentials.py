import asyncio
import logging
import os
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Kubernetes mounts secrets through a ..data symlink that is swapped on rotation
SECRET_DATA_LINK = "..data"


class CredentialsFileHandler(FileSystemEventHandler):
    """Calls back onto the event loop whenever the credentials file changes."""

    def __init__(self, credentials_file: str, on_change: Callable[[], object], loop: asyncio.AbstractEventLoop):
        super().__init__()
        self.file_name = os.path.basename(credentials_file)
        self.on_change = on_change
        self.loop = loop

    def _concerns_credentials(self, path: Optional[str]) -> bool:
        if not path:
            return False
        return os.path.basename(path) in (self.file_name, SECRET_DATA_LINK)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in ("modified", "created", "moved"):
            return
        if self._concerns_credentials(event.src_path) or self._concerns_credentials(getattr(event, "dest_path", None)):
            logger.info(f"Credentials file changed ({event.event_type}: {event.src_path})")
            self.loop.call_soon_threadsafe(self.on_change)


def watch_credentials_file(credentials_file: str, on_change: Callable[[], object]) -> Optional[Observer]:
    """
    Starts a watchdog observer on the directory holding the credentials file.

    Args:
        credentials_file: Path to the service account key file.
        on_change: Called on the running event loop after the file changed.

    Returns:
        The started observer, or None if there is no file to watch.
    """
    if not credentials_file:
        logger.info("No credentials file configured, not watching for credential changes")
        return None

    directory = os.path.dirname(os.path.abspath(credentials_file))
    handler = CredentialsFileHandler(credentials_file, on_change, asyncio.get_running_loop())
    observer = Observer()
    observer.schedule(handler, directory, recursive=False)
    observer.daemon = True
    observer.start()
    logger.info(f"Watching '{directory}' for changes to '{handler.file_name}'")
    return observer
