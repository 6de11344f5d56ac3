import logging

from tagwire.core.logger import _RevisionFilter, configure_root_logger, push_revision, reset_revision


def _record() -> logging.LogRecord:
    return logging.LogRecord("tagwire.test", logging.INFO, __file__, 1, "hello", None, None)


def test_revision_filter_reads_context():
    record = _record()
    token = push_revision("9.1")
    try:
        _RevisionFilter().filter(record)
    finally:
        reset_revision(token)

    assert record.revision == "9.1"


def test_revision_defaults_to_dash_outside_codec_calls():
    record = _record()

    _RevisionFilter().filter(record)

    assert record.revision == "-"


def test_push_without_revision_is_a_no_op():
    assert push_revision(None) is None
    reset_revision(None)


def test_configure_root_logger_is_idempotent():
    configure_root_logger("DEBUG")
    configure_root_logger("INFO")

    ours = [
        h for h in logging.getLogger().handlers
        if any(isinstance(f, _RevisionFilter) for f in h.filters)
    ]
    assert len(ours) == 1
    assert logging.getLogger("tagwire").level == logging.INFO


def test_configure_root_logger_can_send_logs_to_stderr(capsys):
    configure_root_logger("INFO", stream="stderr")
    try:
        logging.getLogger("tagwire.test").info("to stderr")
        configure_root_logger("INFO")
        logging.getLogger("tagwire.test").info("still stderr")

        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert "still stderr" in captured.err
        assert "stderr" not in captured.out
    finally:
        configure_root_logger("INFO", stream="stdout")


def test_log_lines_carry_the_active_revision(capsys):
    configure_root_logger("INFO", stream="stdout")
    token = push_revision("7.10")
    try:
        logging.getLogger("tagwire.test").info("decoded")
    finally:
        reset_revision(token)

    assert "| tagwire.test | rev=7.10 | decoded" in capsys.readouterr().out
