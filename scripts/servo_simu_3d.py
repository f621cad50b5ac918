"""
3D visual servoing on a simulated free-flying camera.

Eye-in-hand control law, velocity computed in the camera frame, features
c_t_cd (translation) and theta-u of c_R_cd. Each iteration optionally
appends a diagnostic line (6 velocities, then the 6 errors) to a log file.
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from visual_servo import (
    InteractionMatrixType,
    RotationRepresentation,
    ServoMode,
    ThetaUFeature,
    TranslationFeature,
    TranslationRepresentation,
    VisualServoTask,
)
from visual_servo.config import ServoParams
from visual_servo.diagnostics import configure_logging, diagnostic_line
from visual_servo.robot import SimulatedCameraRobot, run_servo_step
from visual_servo.transforms import invert_homogeneous, pose_vector_to_homogeneous, rpy_pose

logger = logging.getLogger("visual_servo.scripts.servo_simu_3d")


def main():
    parser = argparse.ArgumentParser(description="Simulate a 3D visual servoing task (camera-frame velocity).")
    parser.add_argument("--iterations", type=int, default=200, help="Number of control cycles.")
    parser.add_argument("--log-file", type=Path, default=None, help="Write velocity/error lines to this file.")
    parser.add_argument(
        "--start-rpy",
        type=float,
        nargs=6,
        metavar=("TX", "TY", "TZ", "ROLL", "PITCH", "YAW"),
        default=None,
        help="Initial cMo as a translation (m) and roll-pitch-yaw angles (deg).",
    )
    args = parser.parse_args()

    params = ServoParams(servo_mode=ServoMode.EYE_IN_HAND_CAMERA.name, interaction=InteractionMatrixType.CURRENT.name)
    configure_logging(params.log_level)

    if args.start_rpy is None:
        cMo = pose_vector_to_homogeneous(0.1, 0.2, 2.0, np.radians(20), np.radians(10), np.radians(50))
    else:
        tx, ty, tz, roll, pitch, yaw = args.start_rpy
        cMo = rpy_pose(tx, ty, tz, *np.radians([roll, pitch, yaw]))
    cdMo = pose_vector_to_homogeneous(0.0, 0.0, 1.0, 0.0, 0.0, 0.0)
    robot = SimulatedCameraRobot(cMo, sampling_time=params.sampling_time)

    t = TranslationFeature(representation=TranslationRepresentation.CMCD)
    tu = ThetaUFeature(representation=RotationRepresentation.CRCD)

    task = VisualServoTask()
    params.apply(task)
    task.add_feature(t)
    task.add_feature(tu)
    print(task.describe())

    log_file = args.log_file.open("w") if args.log_file else None
    try:
        for iteration in range(1, args.iterations + 1):
            cMcd = robot.get_position() @ invert_homogeneous(cdMo)
            t.build_from_homogeneous(cMcd)
            tu.build_from_homogeneous(cMcd)

            result = run_servo_step(task, robot)
            result.unwrap()
            logger.info("iter %d |e|^2=%.6g", iteration, result.error_norm ** 2)
            if log_file is not None:
                log_file.write(diagnostic_line(task) + "\n")
    finally:
        if log_file is not None:
            log_file.close()

    print(task.describe())
    task.kill()


if __name__ == "__main__":
    main()
