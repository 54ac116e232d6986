import logging

from territory.logbook import ClaimLogBuffer, install_log_buffer


def _logger(name, handler):
    logger = logging.getLogger(f"territory.tests.{name}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addHandler(handler)
    return logger


def test_buffer_keeps_most_recent_entries():
    buffer = ClaimLogBuffer(max_entries=3)
    logger = _logger("recent", buffer)
    for i in range(5):
        logger.info("point %s", i)
    entries = buffer.entries()
    assert len(entries) == 3
    assert entries[0].endswith("point 2")
    assert "[INFO]" in entries[-1]


def test_debug_records_are_ignored():
    buffer = ClaimLogBuffer()
    logger = _logger("debug", buffer)
    logger.debug("noise")
    logger.warning("speed")
    assert len(buffer.entries()) == 1


def test_export_and_clear():
    buffer = ClaimLogBuffer()
    logger = _logger("export", buffer)
    logger.info("Tracking started")
    text = buffer.export()
    lines = text.splitlines()
    assert lines[0] == "=== Territory claim log ==="
    assert lines[1].startswith("Exported at: ")
    assert lines[2] == "Entries: 1"
    assert lines[-1].endswith("Tracking started")
    buffer.clear()
    assert buffer.entries() == []


def test_install_returns_single_buffer():
    first = install_log_buffer()
    assert install_log_buffer() is first
    assert first in logging.getLogger("territory").handlers
