import json
import logging

import pytest


@pytest.fixture(autouse=True)
def quiet_locale_sync_logger():
    """Keep the shared logger free of handlers left behind by other tests."""
    logger = logging.getLogger("locale_sync")
    saved_handlers = list(logger.handlers)
    saved_propagate = logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    logger.handlers = saved_handlers
    logger.propagate = saved_propagate


@pytest.fixture
def locales_folder(tmp_path):
    folder = tmp_path / "locales"
    folder.mkdir()
    return folder


@pytest.fixture
def write_locale(locales_folder):
    """Write a locale tree (or raw text) as <locale>.json into the locales folder."""
    def _write(locale, content):
        path = locales_folder / f"{locale}.json"
        if isinstance(content, str):
            path.write_text(content, encoding='utf-8')
        else:
            path.write_text(json.dumps(content, ensure_ascii=False), encoding='utf-8')
        return path
    return _write
