from tracking import t
import logging
import logging.handlers

import pytest

from infrastructure.logging_config import RECLAMATION_LOGGERS, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved_root = (root.level, list(root.handlers))
    saved = {name: list(logging.getLogger(name).handlers) for name in RECLAMATION_LOGGERS}
    yield
    for handler in root.handlers:
        if handler not in saved_root[1]:
            handler.close()
    root.setLevel(saved_root[0])
    root.handlers = saved_root[1]
    for name, handlers in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers


def test_setup_logging_creates_log_files(tmp_path, restore_logging):
    t('tests.unit.test_logging_config.test_setup_logging_creates_log_files')
    log_dir = tmp_path / "latest_log"
    log_dir.mkdir()
    (log_dir / "stale.log").write_text("old run", encoding="utf-8")

    result = setup_logging(str(log_dir), production_mode=False)
    logging.getLogger('ReclamationScheduler').info("scan finished")

    assert result == str(log_dir)
    assert not (log_dir / "stale.log").exists()
    for name in ("smartpark.log", "smartpark_debug.log", "smartpark_errors.log", "reclamation.log"):
        assert (log_dir / name).exists()
    assert "scan finished" in (log_dir / "reclamation.log").read_text(encoding="utf-8")


def test_production_mode_skips_debug_log(tmp_path, restore_logging):
    t('tests.unit.test_logging_config.test_production_mode_skips_debug_log')
    setup_logging(str(tmp_path), production_mode=True)
    setup_logging(str(tmp_path), production_mode=True, clear_previous=False)

    assert not (tmp_path / "smartpark_debug.log").exists()
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger('ReclamationScheduler').level == logging.INFO
    file_handlers = [
        handler
        for handler in logging.getLogger('ReclamationScheduler').handlers
        if isinstance(handler, logging.handlers.RotatingFileHandler)
    ]
    assert len(file_handlers) == 1
