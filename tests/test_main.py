import json

import cv2
import pytest

from main import main


def test_missing_input_returns_error(tmp_path):
    code = main(['--input', str(tmp_path / 'missing.mp4'), '--config', str(tmp_path / 'none.yaml')])
    assert code == 1


def test_cli_writes_video_metrics_and_logs(tmp_path, shaky_sequence):
    input_path = tmp_path / 'input.avi'
    h, w = shaky_sequence[0].shape[:2]
    writer = cv2.VideoWriter(str(input_path), cv2.VideoWriter_fourcc(*'MJPG'), 25, (w, h))
    if not writer.isOpened():
        pytest.skip("Codec MJPG non disponibile")
    for frame in shaky_sequence:
        writer.write(frame)
    writer.release()

    output_path = tmp_path / 'stabilized.mp4'
    diag_dir = tmp_path / 'diag'
    code = main([
        '--input', str(input_path),
        '--output', str(output_path),
        '--diagnostics-dir', str(diag_dir),
        '--save-metrics',
    ])
    if code != 0:
        pytest.skip("Codec mp4v non disponibile")

    metrics = json.loads((tmp_path / 'stabilized_metrics.json').read_text(encoding='utf-8'))
    assert metrics['num_frames'] == len(shaky_sequence) - 1
    assert (diag_dir / 'trajectory.txt').exists()
