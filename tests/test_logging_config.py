import logging

from shared.logging_config import resolve_level, setup_logging


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" Warning ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("chatty") == logging.INFO


def test_setup_logging_writes_file(tmp_path):
    root = logging.getLogger()
    previous_level = root.level
    # basicConfig is a no-op once the test runner has attached its own handlers
    root.setLevel(logging.INFO)
    log_file = tmp_path / "logs" / "api.log"
    try:
        setup_logging("api", level="info", log_file=str(log_file))
        for handler in root.handlers:
            handler.flush()
        assert "[API] INFO - API logging initialized" in log_file.read_text()
    finally:
        for handler in list(root.handlers):
            if isinstance(handler, logging.FileHandler):
                root.removeHandler(handler)
                handler.close()
        root.setLevel(previous_level)


def test_setup_logging_attaches_file_once_and_quiets_http_stack(tmp_path):
    root = logging.getLogger()
    previous_level = root.level
    root.setLevel(logging.INFO)
    log_file = tmp_path / "portal.log"
    try:
        setup_logging("portal", level="info", log_file=str(log_file))
        setup_logging("portal", level="info", log_file=str(log_file))
        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert logging.getLogger("werkzeug").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            if isinstance(handler, logging.FileHandler):
                root.removeHandler(handler)
                handler.close()
        for name in ("werkzeug", "uvicorn.access", "urllib3"):
            logging.getLogger(name).setLevel(logging.NOTSET)
        root.setLevel(previous_level)
