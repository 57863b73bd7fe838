import math

import cv2
import numpy as np
import pytest

from livestab.motion_compensation import MotionCompensator
from livestab.motion_estimation import MotionEstimate
from livestab.trajectory import Pose

from .synthetic import rigid_matrix


@pytest.mark.parametrize('rows, cols', [(240, 320), (480, 640), (720, 1280), (1080, 1920), (101, 37)])
def test_border_crop_scales_with_aspect_ratio(rows, cols):
    vert, horiz = MotionCompensator().border_crop(rows, cols)

    assert horiz == 20
    assert vert == 20 * rows // cols


def test_corrected_delta_adds_trajectory_difference_to_raw_delta():
    estimate = MotionEstimate.from_matrix(rigid_matrix(2.0, -1.0, 0.01))
    trajectory = Pose(10.0, 4.0, 0.1)
    smoothed = Pose(9.0, 4.5, 0.08)

    delta = MotionCompensator.corrected_delta(estimate, trajectory, smoothed)

    assert delta.x == pytest.approx(1.0)
    assert delta.y == pytest.approx(-0.5)
    assert delta.a == pytest.approx(-0.01)


def test_build_transform_uses_corrected_angle():
    M = MotionCompensator.build_transform(Pose(3.0, -4.0, 0.25))

    assert M.shape == (2, 3)
    assert M.dtype == np.float64
    np.testing.assert_allclose(M, [
        [math.cos(0.25), -math.sin(0.25), 3.0],
        [math.sin(0.25), math.cos(0.25), -4.0],
    ])


def test_compose_identity_equals_crop_and_resize(textured_frame):
    compensator = MotionCompensator()
    h, w = textured_frame.shape[:2]

    out = compensator.compose(textured_frame, np.eye(2, 3, dtype=np.float64))

    vert, horiz = compensator.border_crop(h, w)
    expected = cv2.resize(textured_frame[vert:h - vert, horiz:w - horiz], (w, h))
    assert out.shape == textured_frame.shape
    assert np.abs(out.astype(int) - expected.astype(int)).max() <= 1


def test_compose_hides_warp_border(textured_frame):
    compensator = MotionCompensator(horizontal_crop=20)
    bright = np.full_like(textured_frame, 200)

    # Uno spostamento più piccolo del crop non lascia bordi neri
    out = compensator.compose(bright, rigid_matrix(10.0, 5.0, 0.0))

    assert out.shape == bright.shape
    assert out.min() == 200


def test_compose_preserves_size_for_odd_resolutions():
    frame = np.zeros((123, 457, 3), dtype=np.uint8)
    out = MotionCompensator().compose(frame, rigid_matrix(1.0, 1.0, 0.01))
    assert out.shape == frame.shape


def test_compose_rejects_frame_smaller_than_crop():
    frame = np.zeros((30, 40, 3), dtype=np.uint8)
    with pytest.raises(ValueError):
        MotionCompensator(horizontal_crop=20).compose(frame, np.eye(2, 3))


def test_negative_crop_rejected():
    with pytest.raises(ValueError):
        MotionCompensator(horizontal_crop=-1)
