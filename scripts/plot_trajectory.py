"""
Script per visualizzare la traiettoria raw vs filtrata.

Legge le metriche JSON salvate da main.py (--save-metrics) oppure la
cartella dei log diagnostici (--diagnostics-dir) e salva i grafici in PNG.

Usage:
    python scripts/plot_trajectory.py --metrics data/output/video_stabilizzato_metrics.json
    python scripts/plot_trajectory.py --diagnostics-dir data/output/diagnostics
"""

import sys
import json
import argparse
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

# Aggiungi la root del progetto al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from livestab import diagnostics
from livestab.plot_utils import create_correction_plot, create_trajectory_plot, metrics_from_diagnostics


def main():
    parser = argparse.ArgumentParser(description='Grafici della traiettoria stabilizzata')
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--metrics', type=str, help='File JSON delle metriche')
    source.add_argument('--diagnostics-dir', type=str, help='Cartella con i log per frame')
    parser.add_argument('--output', type=str, default='data/output/trajectory.png',
                        help='Path del PNG della traiettoria')
    args = parser.parse_args()

    if args.metrics:
        with open(args.metrics, 'r', encoding='utf-8') as f:
            metrics = json.load(f)
    else:
        d = Path(args.diagnostics_dir)
        metrics = metrics_from_diagnostics(
            d / diagnostics.TRAJECTORY_LOG,
            d / diagnostics.SMOOTHED_TRAJECTORY_LOG,
            d / diagnostics.TRANSFORM_LOG,
            d / diagnostics.NEW_TRANSFORM_LOG,
        )

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    fig = create_trajectory_plot(metrics)
    if fig is None:
        print("❌ Nessuna traiettoria da visualizzare")
        return 1
    fig.savefig(output, dpi=120)
    print(f"✅ Traiettoria salvata in: {output}")

    fig = create_correction_plot(metrics)
    if fig is not None:
        correction_path = output.with_name(output.stem + '_correction.png')
        fig.savefig(correction_path, dpi=120)
        print(f"✅ Correzioni salvate in: {correction_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
