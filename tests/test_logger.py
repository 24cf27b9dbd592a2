import logging

from text_converter import logger as tc_logger


def _ours(base: logging.Logger):
    return [h for h in base.handlers if getattr(h, "_text_converter_stderr", False)]


def test_setup_logger_idempotent_handlers(monkeypatch):
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    monkeypatch.delenv("TEXT_CONVERTER_LOG_LEVEL", raising=False)
    base = tc_logger.setup_logger(level=logging.DEBUG)
    _ = tc_logger.setup_logger(level=logging.DEBUG)

    assert len(_ours(base)) == 1
    assert base.propagate is False


def test_env_level_overrides_argument(monkeypatch):
    monkeypatch.setenv("TEXT_CONVERTER_LOG_LEVEL", "warning")
    base = tc_logger.setup_logger(level=logging.DEBUG)
    assert base.level == logging.WARNING


def test_category_filter(monkeypatch):
    monkeypatch.setenv("TEXT_CONVERTER_LOG_CATS", "executor, tags")
    base = tc_logger.setup_logger()
    (handler,) = _ours(base)

    def record(name: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)

    assert handler.filter(record("text_converter.executor"))
    assert handler.filter(record("text_converter.tags"))
    assert not handler.filter(record("text_converter.sniffer"))

    monkeypatch.delenv("TEXT_CONVERTER_LOG_CATS")
    tc_logger.setup_logger()
    assert handler.filter(record("text_converter.sniffer"))


def test_get_logger_returns_children():
    assert tc_logger.get_logger("executor").name == "text_converter.executor"
    assert tc_logger.get_logger().name == "text_converter"
