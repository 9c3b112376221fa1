"""Tests for the command-line interface and logging setup."""

import logging
from pathlib import Path

import pytest

from jax_dynamics.__main__ import main
from jax_dynamics.logging_config import setup_logging

FIXTURES = Path(__file__).parent / "fixtures"
URDF = str(FIXTURES / "planar_arm.urdf")
SRDF = str(FIXTURES / "planar_arm.srdf")


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("jax_dynamics")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def test_max_payload_report(capsys):
    """By default the CLI reports the maximum payload and the limits."""
    assert main([URDF, SRDF, "arm", "--angles", "0", "0", "0"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("Max payload: 1.07")
    assert "(joint 0 saturates)" in lines[0]
    assert lines[1] == "Max torques: 10.0000 10.0000 10.0000"


def test_payload_torques_report(capsys):
    """With --payload the CLI prints the holding torque of every joint."""
    assert main([URDF, SRDF, "arm", "--angles", "0", "0", "0", "--payload", "0"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert [line.split(":")[0] for line in lines[:3]] == ["Joint 0", "Joint 1", "Joint 2"]
    assert lines[0] == "Joint 0: -3.7278 / 10.0000"


def test_invalid_group_fails(capsys):
    """Groups that are not serial chains are rejected with a non-zero status."""
    assert main([URDF, SRDF, "fingers", "--angles", "0", "0"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Could not build a dynamics solver for group 'fingers'" in captured.err


def test_wrong_angle_count_fails(capsys):
    """An angle vector of the wrong size yields a failure status."""
    assert main([URDF, SRDF, "arm", "--angles", "0", "0"]) == 1
    assert "Joint angles vector should be size 3" in capsys.readouterr().err


def test_setup_logging_handlers(tmp_path):
    """setup_logging installs one console handler plus an optional file handler."""
    log_file = tmp_path / "dynamics.log"

    logger = setup_logging(logging.DEBUG, str(log_file))
    assert logger.name == "jax_dynamics"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    # Calling again replaces the handlers instead of stacking them
    logger = setup_logging(logging.INFO)
    assert len(logger.handlers) == 1

    assert "Logging initialized." in log_file.read_text(encoding="utf-8")


def test_verbose_log_file(tmp_path, capsys):
    """--verbose writes the solver's debug trace to the log file."""
    log_file = tmp_path / "run.log"
    assert main([URDF, SRDF, "arm", "--angles", "0", "0", "0", "--verbose", "--log-file", str(log_file)]) == 0
    capsys.readouterr()

    text = log_file.read_text(encoding="utf-8")
    assert "Base name: 'base_link', Tip name: 'tool'" in text
    assert "Max payload (kg)" in text
