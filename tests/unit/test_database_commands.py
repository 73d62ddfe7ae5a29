"""
Unit tests for the database CLI module
"""

import importlib
import logging

import database_commands


def test_import_installs_no_root_handler(monkeypatch):
    root_logger = logging.getLogger()
    monkeypatch.setattr(root_logger, 'handlers', [])

    importlib.reload(database_commands)

    assert root_logger.handlers == []


def test_setup_app_logs_through_one_handler(monkeypatch):
    root_logger = logging.getLogger()
    monkeypatch.setattr(root_logger, 'handlers', [])

    importlib.reload(database_commands)
    database_commands.setup_app()
    database_commands.setup_app()

    assert len(root_logger.handlers) == 1
    assert getattr(root_logger.handlers[0], '_fleet_handler', False) is True
