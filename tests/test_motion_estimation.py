import math

import cv2
import numpy as np
import pytest

from livestab.motion_estimation import FrameSizeMismatchError, MotionEstimate, MotionEstimator

from .synthetic import rigid_matrix, shifted


def to_gray(frame):
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def test_recovers_known_rigid_transform(textured_frame):
    prev = to_gray(textured_frame)
    curr = to_gray(shifted(textured_frame, 5.0, 3.0, 0.02))

    estimate = MotionEstimator().estimate(prev, curr)

    assert estimate is not None
    assert estimate.dx == pytest.approx(5.0, abs=0.5)
    assert estimate.dy == pytest.approx(3.0, abs=0.5)
    assert estimate.da == pytest.approx(0.02, abs=0.01)


def test_estimate_is_strictly_rigid(textured_frame):
    prev = to_gray(textured_frame)
    curr = to_gray(shifted(textured_frame, -2.0, 1.0, -0.01))

    estimate = MotionEstimator().estimate(prev, curr)

    rotation = estimate.matrix[:, :2]
    np.testing.assert_allclose(rotation @ rotation.T, np.eye(2), atol=1e-9)


def test_identical_frames_give_near_zero_motion(textured_frame):
    gray = to_gray(textured_frame)
    estimate = MotionEstimator().estimate(gray, gray.copy())

    assert estimate is not None
    assert abs(estimate.dx) < 0.1
    assert abs(estimate.dy) < 0.1
    assert abs(estimate.da) < 1e-3


def test_featureless_frames_are_unavailable():
    flat = np.full((240, 320), 128, dtype=np.uint8)
    assert MotionEstimator().estimate(flat, flat.copy()) is None


def test_mismatched_sizes_raise(textured_frame):
    gray = to_gray(textured_frame)
    with pytest.raises(FrameSizeMismatchError):
        MotionEstimator().estimate(gray, gray[:-10, :])


def test_color_input_rejected(textured_frame):
    with pytest.raises(ValueError):
        MotionEstimator().estimate(textured_frame, textured_frame)


def test_from_matrix_decomposition():
    estimate = MotionEstimate.from_matrix(rigid_matrix(4.0, -2.5, 0.3))

    assert estimate.dx == pytest.approx(4.0)
    assert estimate.dy == pytest.approx(-2.5)
    assert estimate.da == pytest.approx(0.3)


def test_from_matrix_angle_range():
    estimate = MotionEstimate.from_matrix(rigid_matrix(0.0, 0.0, math.pi))
    assert -math.pi < estimate.da <= math.pi
    assert abs(estimate.da) == pytest.approx(math.pi)


def test_remove_scale_normalizes_similarity():
    similarity = 1.1 * rigid_matrix(0.0, 0.0, 0.1)
    similarity[:, 2] = (3.0, 4.0)

    rigid = MotionEstimator._remove_scale(similarity)

    assert math.hypot(rigid[0, 0], rigid[1, 0]) == pytest.approx(1.0)
    assert tuple(rigid[:, 2]) == (3.0, 4.0)


def test_invalid_parameters_rejected():
    with pytest.raises(ValueError):
        MotionEstimator(max_corners=0)
    with pytest.raises(ValueError):
        MotionEstimator(min_matches=1)
