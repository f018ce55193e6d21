from gpgomea.logger import Logger, get_logger


def test_log_appends_lines(tmp_path):
    target = tmp_path / "stats.txt"
    with Logger() as logger:
        logger.log("first", target)
        logger.log("second", target)
    assert target.read_text(encoding="utf-8").splitlines() == ["first", "second"]


def test_log_switches_files(tmp_path):
    a = tmp_path / "a.txt"
    b = tmp_path / "b.txt"
    with Logger() as logger:
        logger.log("one", a)
        logger.log("two", b)
        logger.log("three", a)
    assert a.read_text(encoding="utf-8").splitlines() == ["one", "three"]
    assert b.read_text(encoding="utf-8").splitlines() == ["two"]


def test_log_appends_to_existing_file(tmp_path):
    target = tmp_path / "result.txt"
    target.write_text("old\n", encoding="utf-8")
    logger = Logger()
    logger.log("new", target)
    logger.close()
    assert target.read_text(encoding="utf-8").splitlines() == ["old", "new"]


def test_log_is_visible_before_close(tmp_path):
    target = tmp_path / "live.txt"
    logger = Logger()
    logger.log("now", target)
    try:
        assert target.read_text(encoding="utf-8") == "now\n"
    finally:
        logger.close()


def test_get_logger_is_shared(tmp_path):
    first = get_logger()
    second = get_logger()
    assert first is second
    target = tmp_path / "shared.txt"
    first.log("x", target)
    second.log("y", target)
    first.close()
    assert target.read_text(encoding="utf-8").splitlines() == ["x", "y"]