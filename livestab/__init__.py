"""
Live Video Stabilization
Stabilizzazione video causale: stima del movimento, filtro di Kalman e compensazione per frame
"""

__version__ = "1.0.0"
__author__ = "Multimedia Project"

from .trajectory import Pose, SessionState
from .motion_estimation import FrameSizeMismatchError, MotionEstimate, MotionEstimator
from .trajectory_smoothing import TrajectoryKalmanFilter
from .motion_compensation import MotionCompensator
from .video_stabilizer import VideoStabilizer
from .config import load_config

__all__ = [
    'Pose',
    'SessionState',
    'FrameSizeMismatchError',
    'MotionEstimate',
    'MotionEstimator',
    'TrajectoryKalmanFilter',
    'MotionCompensator',
    'VideoStabilizer',
    'load_config',
]
