"""
Script principale per eseguire la stabilizzazione video
Esempio di utilizzo del sistema completo
"""

import sys
import json
import logging
import argparse
from pathlib import Path

from livestab.config import load_config
from livestab.video_stabilizer import VideoStabilizer


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Live Video Stabilization (Kalman)')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path al file di configurazione YAML (default: config/config.yaml)')
    parser.add_argument('--input', type=str, default='data/input/video_instabile.mp4',
                        help='Path al video di input (default: data/input/video_instabile.mp4)')
    parser.add_argument('--output', type=str, default='data/output/video_stabilizzato.mp4',
                        help='Path al video di output (default: data/output/video_stabilizzato.mp4)')
    parser.add_argument('--diagnostics-dir', type=str, default=None,
                        help='Cartella per i log per frame (trasformazioni e traiettorie)')
    parser.add_argument('--save-metrics', action='store_true',
                        help='Salva le metriche JSON accanto al video di output')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log di debug (mostra anche le stime fallite)')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Funzione principale per eseguire la stabilizzazione video.

    Flusso:
    1. Carica la configurazione (YAML + default)
    2. Verifica l'esistenza del video di input
    3. Crea il VideoStabilizer
    4. Esegue la stabilizzazione frame per frame

    Returns:
        Codice di uscita (0 = successo)
    """
    args = parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    print("=" * 60)
    print("LIVE VIDEO STABILIZATION")
    print("Stima del movimento + filtro di Kalman causale")
    print("=" * 60)
    print()

    config_path = Path(args.config)
    if config_path.exists():
        print(f"📄 Caricamento configurazione da: {config_path}")
        config = load_config(config_path)
    else:
        print(f"⚠️  File di configurazione non trovato: {config_path}, uso i default")
        config = load_config()

    if args.diagnostics_dir:
        config['diagnostics_dir'] = args.diagnostics_dir
    if args.save_metrics:
        config['save_metrics'] = True

    ts = config['trajectory_smoothing']
    print(f"   - Process noise (Q): {ts['process_noise']}")
    print(f"   - Measurement noise (R): {ts['measurement_noise']}")
    print(f"   - Crop orizzontale: {config['motion_compensation']['horizontal_crop']} px")
    print()

    input_video = Path(args.input)
    output_video = Path(args.output)

    if not input_video.exists():
        print(f"❌ Video di input non trovato: {input_video}")
        print("   Usa --input per specificare un altro video")
        return 1

    print(f"📹 Video di input: {input_video}")
    print(f"📁 Output: {output_video}")
    print()

    with VideoStabilizer(config) as stabilizer:
        success = stabilizer.stabilize_video(
            input_path=str(input_video),
            output_path=str(output_video),
            show_progress=True,
        )

        if not success:
            print()
            print("=" * 60)
            print("❌ ERRORE DURANTE LA STABILIZZAZIONE")
            print("=" * 60)
            print("Controlla i messaggi di errore precedenti per dettagli.")
            return 1

        print()
        print("=" * 60)
        print("✅ STABILIZZAZIONE COMPLETATA CON SUCCESSO!")
        print("=" * 60)
        print(f"📁 Video stabilizzato salvato in: {output_video}")

        if config.get('save_metrics', False):
            metrics = stabilizer.get_metrics()
            if 'error' in metrics:
                print(f"⚠️  {metrics['error']}")
                return 0

            metrics_path = output_video.with_name(output_video.stem + '_metrics.json')
            with open(metrics_path, 'w', encoding='utf-8') as f:
                json.dump(metrics, f, indent=2, ensure_ascii=False)

            print()
            print(f"✅ Metriche salvate in: {metrics_path}")
            print(f"   - Frames: {metrics['num_frames']}")
            print(f"   - RMS DX: {metrics['rms_dx']:.2f} px")
            print(f"   - RMS DY: {metrics['rms_dy']:.2f} px")
            print(f"   - Jitter Reduction X: {metrics['jitter_reduction_x']:.1f}%")
            print(f"   - Jitter Reduction Y: {metrics['jitter_reduction_y']:.1f}%")
            print(f"   - Stime fallite: {metrics['fallback_count']}")
            print(f"   - Tempo processing: {metrics['total_processing_time']:.2f} s")

    return 0


if __name__ == "__main__":
    sys.exit(main())
