"""Tests for log level resolution."""

import argparse
import logging

import pytest

from logging_utils import LOG_LEVEL_ENV, add_logging_args, resolve_log_level


@pytest.mark.parametrize(
    "verbose, quiet, expected",
    [
        (0, 0, logging.INFO),
        (1, 0, logging.DEBUG),
        (2, 0, logging.DEBUG),
        (0, 1, logging.WARNING),
        (0, 2, logging.ERROR),
        (1, 1, logging.INFO),
    ],
)
def test_verbosity_modifiers(verbose, quiet, expected):
    assert resolve_log_level(verbose=verbose, quiet=quiet, environ={}) == expected


def test_explicit_level_wins():
    env = {LOG_LEVEL_ENV: "error"}
    assert resolve_log_level("debug", verbose=0, quiet=2, environ=env) == logging.DEBUG


def test_environment_fallback():
    assert resolve_log_level(environ={LOG_LEVEL_ENV: "WARNING"}) == logging.WARNING


def test_environment_ignored_with_modifiers():
    assert resolve_log_level(verbose=1, environ={LOG_LEVEL_ENV: "error"}) == logging.DEBUG


def test_unknown_environment_value_ignored():
    assert resolve_log_level(environ={LOG_LEVEL_ENV: "chatty"}) == logging.INFO


def test_logging_args_parse():
    parser = argparse.ArgumentParser()
    add_logging_args(parser)
    args = parser.parse_args(["-vv", "--log-level", "warning"])
    assert args.verbose == 2
    assert args.log_level == "warning"
