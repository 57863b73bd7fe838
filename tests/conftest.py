import numpy as np
import pytest

from .synthetic import make_textured_frame, shifted


@pytest.fixture
def textured_frame():
    return make_textured_frame()


@pytest.fixture
def shaky_sequence():
    """Sequenza di frame con piccole traslazioni casuali attorno al frame base."""
    base = make_textured_frame(seed=1)
    rng = np.random.default_rng(7)
    frames = [base.copy()]
    for _ in range(8):
        dx, dy = rng.uniform(-3.0, 3.0, size=2)
        frames.append(shifted(base, float(dx), float(dy)))
    return frames
