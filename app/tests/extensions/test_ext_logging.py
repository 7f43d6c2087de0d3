import logging
from logging.handlers import RotatingFileHandler

import pytest

from configs import app_config
from extensions.ext_logging import (
    RequestIdFilter,
    RequestIdFormatter,
    init_logging,
    trace_id_generator,
    trace_id_var,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)


class TestRequestIdFilter:
    def test_empty_outside_request(self):
        record = make_record()
        assert RequestIdFilter().filter(record) is True
        assert record.trace_id == ""

    def test_uses_current_trace_id(self):
        token = trace_id_var.set("abc123")
        try:
            record = make_record()
            RequestIdFilter().filter(record)
            assert record.trace_id == "abc123"
        finally:
            trace_id_var.reset(token)

    def test_generated_ids_are_unique(self):
        assert trace_id_generator() != trace_id_generator()


class TestRequestIdFormatter:
    def test_formats_record_without_filter(self):
        formatter = RequestIdFormatter("%(trace_id)s|%(message)s")
        assert formatter.format(make_record()) == "|hello"


class TestInitLogging:
    def test_stream_handler_only(self, restore_root_logger, monkeypatch):
        monkeypatch.setattr(app_config, "LOG_FILE", None)
        monkeypatch.setattr(app_config, "LOG_LEVEL", "DEBUG")
        init_logging()

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, RequestIdFormatter)
        assert any(isinstance(f, RequestIdFilter) for f in handler.filters)

    def test_rotating_file_handler(self, restore_root_logger, monkeypatch, tmp_path):
        log_file = tmp_path / "logs" / "reqjson.log"
        monkeypatch.setattr(app_config, "LOG_FILE", str(log_file))
        monkeypatch.setattr(app_config, "LOG_TZ", "UTC")
        init_logging()

        logging.getLogger("reqjson.test").warning("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert "written to file" in log_file.read_text()
