"""Tests for leela_report.log — package logging setup."""

import logging

import pytest

from leela_report.log import ROOT_LOGGER_NAME, get_logger, set_global_log_level


def describe_get_logger():
    def it_returns_children_of_the_package_logger():
        logger = get_logger("leela_report.driver")
        assert logger.name == "leela_report.driver"
        assert logger.level == logging.NOTSET

    def it_configures_a_single_handler():
        get_logger("leela_report.a")
        get_logger("leela_report.b")
        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1


def describe_set_global_log_level():
    @pytest.fixture(autouse=True)
    def restore_level():
        root = logging.getLogger(ROOT_LOGGER_NAME)
        level = root.level
        yield
        root.setLevel(level)

    def it_accepts_level_names():
        set_global_log_level("debug")
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.DEBUG

    def it_accepts_numeric_levels():
        set_global_log_level(logging.ERROR)
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.ERROR

    def it_rejects_unknown_names():
        with pytest.raises(ValueError):
            set_global_log_level("chatty")
