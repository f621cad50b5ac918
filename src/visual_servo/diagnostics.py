"""
Diagnostics

Logger setup and the per-cycle diagnostic line: whitespace-separated
floats, velocity components followed by error components.
"""

import logging

import numpy as np

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def configure_logging(level="INFO", name: str = "visual_servo") -> logging.Logger:
    """Attach a stream handler to the package logger (once) and set its level."""
    log = logging.getLogger(name)
    log.setLevel(getattr(logging, str(level).upper(), logging.INFO) if isinstance(level, str) else level)
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    return log


def format_diagnostic_line(velocity, error, precision: int = 10) -> str:
    values = np.concatenate((np.asarray(velocity, dtype=float).ravel(), np.asarray(error, dtype=float).ravel()))
    return " ".join(f"{x:.{precision}g}" for x in values)


def diagnostic_line(task) -> str:
    """Diagnostic line from the last velocity and error stored in a task."""
    if task.velocity is None or task.error is None:
        raise ValueError("Task has no computed control law to report")
    return format_diagnostic_line(task.velocity, task.error)
