import logging
import sys

from axis_core.core.logging import LOG_FORMAT, ContextFormatter


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "axis_core.cli",
        logging.ERROR,
        __file__,
        1,
        "release_scheduler_crashed",
        None,
        None,
    )
    record.__dict__.update(extra)
    return record


def test_context_formatter_renders_extra_fields() -> None:
    formatter = ContextFormatter(LOG_FORMAT)

    line = formatter.format(_record(scanned=7, enqueued=5, stopped=False))

    assert line.endswith(
        "ERROR [axis_core.cli] release_scheduler_crashed "
        "enqueued=5 scanned=7 stopped=false"
    )


def test_context_formatter_leaves_plain_records_untouched() -> None:
    formatter = ContextFormatter("%(levelname)s %(message)s")

    assert formatter.format(_record()) == "ERROR release_scheduler_crashed"


def test_context_formatter_keeps_traceback_after_fields() -> None:
    formatter = ContextFormatter("%(message)s")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record(failed=1)
        record.exc_info = sys.exc_info()

    first_line, *rest = formatter.format(record).splitlines()

    assert first_line == "release_scheduler_crashed failed=1"
    assert rest[-1] == "RuntimeError: boom"
