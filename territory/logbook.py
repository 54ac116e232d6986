import logging
import threading
from collections import deque
from datetime import datetime
from typing import List

MAX_ENTRIES = 200
LOGGER_NAME = "territory"


class ClaimLogBuffer(logging.Handler):
    """
    Keeps the most recent claim-flow log records in memory so a client can pull them
    while testing in the field.
    """

    def __init__(self, max_entries: int = MAX_ENTRIES, level=logging.INFO):
        super().__init__(level=level)
        self._entries = deque(maxlen=max_entries)
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord):
        try:
            line = (
                f"[{datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')}] "
                f"[{record.levelname}] {record.getMessage()}"
            )
        except Exception:  # pragma: no cover - mirrors logging.Handler behaviour
            self.handleError(record)
            return
        with self._entries_lock:
            self._entries.append(line)

    def entries(self) -> List[str]:
        with self._entries_lock:
            return list(self._entries)

    def clear(self):
        with self._entries_lock:
            self._entries.clear()

    def export(self) -> str:
        entries = self.entries()
        header = [
            "=== Territory claim log ===",
            f"Exported at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            f"Entries: {len(entries)}",
            "",
        ]
        return "\n".join(header + entries) + "\n"


_buffer: ClaimLogBuffer | None = None


def install_log_buffer(max_entries: int = MAX_ENTRIES) -> ClaimLogBuffer:
    """Attach a single buffer to the territory logger; later calls return the same one."""
    global _buffer
    if _buffer is None:
        _buffer = ClaimLogBuffer(max_entries=max_entries)
        logger = logging.getLogger(LOGGER_NAME)
        logger.addHandler(_buffer)
        if logger.level == logging.NOTSET or logger.level > logging.INFO:
            logger.setLevel(logging.INFO)
    return _buffer
