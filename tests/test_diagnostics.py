import logging

import pytest

from visual_servo import PointFeature
from visual_servo.diagnostics import configure_logging, diagnostic_line, format_diagnostic_line


def test_format_diagnostic_line():
    line = format_diagnostic_line([1.0, -0.5], [0.25])
    assert line.split() == ["1", "-0.5", "0.25"]


def test_diagnostic_line_from_task(camera_task, off_center_point):
    with pytest.raises(ValueError):
        diagnostic_line(camera_task)
    camera_task.add_feature(off_center_point, PointFeature(0.0, 0.0, 1.0))
    camera_task.compute_control_law()
    fields = [float(x) for x in diagnostic_line(camera_task).split()]
    assert len(fields) == 6 + 2
    assert fields[6:] == pytest.approx([0.5, 0.3])


def test_configure_logging_is_idempotent():
    log = configure_logging("DEBUG", name="visual_servo.test_diag")
    configure_logging("INFO", name="visual_servo.test_diag")
    assert len(log.handlers) == 1
    assert log.level == logging.INFO


def test_rank_loss_logged_once(camera_task, caplog):
    camera_task.add_feature(PointFeature(0.2, 0.1, 1.0), PointFeature())
    camera_task.add_feature(PointFeature(0.2, 0.1, 1.0), PointFeature())
    with caplog.at_level(logging.WARNING, logger="visual_servo.task"):
        camera_task.compute_control_law()
        camera_task.compute_control_law()
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
