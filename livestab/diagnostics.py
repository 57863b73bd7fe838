"""Log diagnostici per frame: trasformazioni e traiettorie in file di testo"""
import logging
from pathlib import Path
from typing import Iterable


logger = logging.getLogger(__name__)

TRANSFORM_LOG = 'prev_to_cur_transformation.txt'
TRAJECTORY_LOG = 'trajectory.txt'
SMOOTHED_TRAJECTORY_LOG = 'smoothed_trajectory.txt'
NEW_TRANSFORM_LOG = 'new_prev_to_cur_transformation.txt'


class TrajectoryLogger:
    """
    Scrive quattro log paralleli, una riga per frame processato:
    `frame_index v1 v2 v3`.
    """

    def __init__(self, output_dir):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self._files = {
            'transform': open(self.output_dir / TRANSFORM_LOG, 'w', encoding='utf-8'),
            'trajectory': open(self.output_dir / TRAJECTORY_LOG, 'w', encoding='utf-8'),
            'smoothed': open(self.output_dir / SMOOTHED_TRAJECTORY_LOG, 'w', encoding='utf-8'),
            'new_transform': open(self.output_dir / NEW_TRANSFORM_LOG, 'w', encoding='utf-8'),
        }
        logger.info(f"Log diagnostici in: {self.output_dir}")

    def _write(self, key: str, frame_idx: int, values: Iterable[float]):
        line = " ".join([str(frame_idx)] + [repr(float(v)) for v in values])
        self._files[key].write(line + "\n")

    def log_frame(self, frame_idx: int, transform, trajectory, smoothed, new_transform):
        """Registra i quattro valori (tuple x, y, a) del frame."""
        self._write('transform', frame_idx, transform)
        self._write('trajectory', frame_idx, trajectory)
        self._write('smoothed', frame_idx, smoothed)
        self._write('new_transform', frame_idx, new_transform)

    def close(self):
        for f in self._files.values():
            if not f.closed:
                f.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
