# This file is part of cloudboot. See LICENSE file for license information.

import logging

import pytest

from cloudboot.context import Context


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep the host's cloudboot environment out of the tests."""
    monkeypatch.delenv("CLOUDBOOT_CFG", raising=False)
    monkeypatch.delenv("DEBUG_PROC_CMDLINE", raising=False)


@pytest.fixture
def ctx():
    context = Context()
    yield context
    context.cancel()


@pytest.fixture
def restore_root_logger():
    """Undo handler and converter changes made to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    converter = logging.Formatter.converter
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.Formatter.converter = converter
