"""Tests for loguru sink configuration."""

import pytest
from loguru import logger

from program_engine.config.settings import settings
from program_engine.core.logger import render_context, setup_logger


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "logs" / "engine.log"
    yield path
    setup_logger(level=settings.log_level, module_levels=settings.log_module_levels)


def _read(path) -> str:
    logger.remove()
    return path.read_text()


def test_context_renders_as_sorted_pairs():
    assert render_context({"program_id": "p1", "day_index": 3, "_context": "x"}) == "day_index=3 program_id=p1"
    assert render_context({}) == ""


def test_file_sink_writes_structured_context(log_file):
    setup_logger(level="DEBUG", log_file=str(log_file))
    logger.info("Saved day override", program_id="prog-1", fields={"title"})
    logger.info("Plain message")

    lines = [line for line in _read(log_file).splitlines() if "Logger initialized" not in line]
    assert lines[0].endswith("Saved day override | fields={'title'} program_id=prog-1")
    assert lines[1].endswith("Plain message")


def test_module_levels_override_default_level(log_file):
    setup_logger(level="DEBUG", log_file=str(log_file), module_levels={__name__: "WARNING"})
    logger.info("Quiet here")
    logger.warning("Loud here")

    content = _read(log_file)
    assert "Quiet here" not in content
    assert "Loud here" in content
