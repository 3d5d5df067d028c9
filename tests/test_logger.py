import pytest

from termcast import logger


@pytest.fixture(autouse=True)
def _enabled(monkeypatch):
    monkeypatch.setattr(logger, "_enabled", True)


def test_info_prints_prefixed_message(capsys):
    logger.info("Recording session started")

    assert capsys.readouterr().out == "::: Recording session started\n"


def test_disable_silences_messages(capsys):
    logger.disable()
    logger.info("Playback ended")

    assert capsys.readouterr().out == ""


def test_messages_are_printed_in_order(capsys):
    logger.info("one")
    logger.info("two")

    assert capsys.readouterr().out.splitlines() == ["::: one", "::: two"]