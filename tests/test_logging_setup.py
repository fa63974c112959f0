import logging
from datetime import date

import pytest

from catalogsync.core.logging_setup import build_logger


@pytest.fixture
def logger_name(tmp_path):
    name = f"catalogsync_test_{tmp_path.name}"
    yield name
    for logger in (logging.getLogger(name), logging.getLogger(f"{name}.diff.r1")):
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()


def test_build_logger_writes_app_and_run_files(tmp_path, logger_name):
    base_dir = tmp_path / "logs"
    log = build_logger(name=logger_name, run_id="r1", action="diff", base_dir=str(base_dir))
    log.info("Diffing item key=shirt")
    log.debug("detail only in files")

    app_log = (base_dir / "app.log").read_text(encoding="utf-8")
    assert "Logger initialised" in app_log
    assert "run=r1 action=diff item=-" in app_log
    assert "detail only in files" in app_log

    today = date.today().isoformat()
    run_log = (base_dir / today / "diff_r1.log").read_text(encoding="utf-8")
    assert "Diffing item key=shirt" in run_log


def test_console_skips_debug(tmp_path, logger_name, capsys):
    log = build_logger(name=logger_name, run_id="r1", action="diff", base_dir=str(tmp_path / "logs"))
    log.debug("hidden")
    log.warning("visible")
    err = capsys.readouterr().err
    assert "visible" in err
    assert "hidden" not in err


def test_records_without_context_get_defaults(tmp_path, logger_name):
    base_dir = tmp_path / "logs"
    build_logger(name=logger_name, run_id="r1", action="diff", base_dir=str(base_dir))
    logging.getLogger(logger_name).warning("plain record")
    app_log = (base_dir / "app.log").read_text(encoding="utf-8")
    assert "run=- action=- item=- | plain record" in app_log


def test_handlers_not_duplicated(tmp_path, logger_name):
    for _ in range(2):
        build_logger(name=logger_name, run_id="r1", action="diff", base_dir=str(tmp_path / "logs"))
    base = logging.getLogger(logger_name)
    assert len(base.handlers) == 2
    assert len(logging.getLogger(f"{logger_name}.diff.r1").handlers) == 1


def test_app_log_follows_new_base_dir(tmp_path, logger_name):
    build_logger(name=logger_name, run_id="r1", action="diff", base_dir=str(tmp_path / "first"))
    log = build_logger(name=logger_name, run_id="r1", action="diff", base_dir=str(tmp_path / "second"))
    log.warning("after move")
    assert "after move" in (tmp_path / "second" / "app.log").read_text(encoding="utf-8")
    assert "after move" not in (tmp_path / "first" / "app.log").read_text(encoding="utf-8")
