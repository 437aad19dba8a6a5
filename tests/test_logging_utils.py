import logging
import tempfile
import unittest
from pathlib import Path

from src.core.logging_utils import describe_error, log_once, setup_logging


def _detach_file_handlers():
    root = logging.getLogger()
    removed = []
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            removed.append(handler)
    return removed


class TestLoggingUtils(unittest.TestCase):
    def test_setup_logging_writes_to_log_dir(self):
        previous = _detach_file_handlers()
        try:
            with tempfile.TemporaryDirectory() as td:
                log_dir = Path(td)
                log_path = setup_logging(log_dir=log_dir, filename="test.log")
                self.assertEqual(log_path, log_dir / "test.log")
                self.assertTrue(log_path.exists())

                # Second call reuses the attached handler.
                again = setup_logging(log_dir=log_dir / "other")
                self.assertEqual(again, log_path)

                for handler in _detach_file_handlers():
                    handler.close()
        finally:
            root = logging.getLogger()
            for handler in previous:
                root.addHandler(handler)

    def test_describe_error_mentions_log_path(self):
        msg = describe_error(ValueError("boom"), log_path=Path("x.log"))
        self.assertTrue(msg.startswith("Error: boom"))
        self.assertIn("x.log", msg)
        self.assertEqual(describe_error(ValueError("boom")), "Error: boom")

    def test_describe_error_falls_back_to_type_name(self):
        self.assertEqual(describe_error(RuntimeError()), "Error: RuntimeError")

    def test_describe_error_names_missing_file(self):
        err = FileNotFoundError(2, "No such file or directory", "bark.png")
        self.assertEqual(describe_error(err), "Error: file not found: bark.png")

    def test_log_once_only_logs_first_time(self):
        logger = logging.getLogger("moldwrap.test")
        with self.assertLogs("moldwrap.test", level=logging.WARNING) as captured:
            self.assertTrue(log_once(logger, "test_logging_utils.once", logging.WARNING, "hello %s", "world"))
            self.assertFalse(log_once(logger, "test_logging_utils.once", logging.WARNING, "hello %s", "world"))

        self.assertEqual([r.getMessage() for r in captured.records], ["hello world"])
