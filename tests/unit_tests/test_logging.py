from loguru import logger

from exactzonal.logging import bind_run_context, feature_context, new_run_id, setup_logging


def test_new_run_id():
    run_id = new_run_id()
    assert len(run_id) == 8
    assert run_id != new_run_id()


def test_feature_context_binds_feature_id():
    seen = []
    handler = logger.add(lambda message: seen.append(message.record["extra"].get("feature_id")))
    try:
        with feature_context("zone-1"):
            logger.info("inside")
        logger.info("outside")
    finally:
        logger.remove(handler)

    assert seen == ["zone-1", None]


def test_log_file_receives_records(tmp_path, restore_logger):
    path = tmp_path / "run.log"
    bind_run_context("abc12345")
    setup_logging(level="INFO", log_file=str(path))
    with feature_context("zone-7"):
        logger.info("processed")
    logger.debug("hidden")
    logger.remove()

    text = path.read_text()
    assert "abc12345" in text
    assert "zone-7 | processed" in text
    assert "hidden" not in text
