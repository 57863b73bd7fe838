"""Funzioni di plotting per traiettorie e log diagnostici"""
import numpy as np
import matplotlib.pyplot as plt


def load_diagnostic_log(path):
    """
    Carica uno dei log diagnostici (`frame_index v1 v2 v3` per riga).

    Returns:
        Array (N, 4) con indice del frame e i tre valori
    """
    data = np.loadtxt(path, dtype=np.float64, ndmin=2)
    if data.size == 0:
        return np.zeros((0, 4))
    if data.shape[1] != 4:
        raise ValueError(f"Formato log non valido in {path}: attese 4 colonne, trovate {data.shape[1]}")
    return data


def create_trajectory_plot(metrics):
    """Crea grafico della traiettoria raw vs smoothed (x, y, angolo)"""
    if not metrics or not metrics.get('raw_trajectory'):
        return None

    raw = np.array(metrics['raw_trajectory'])
    smooth = np.array(metrics['smoothed_trajectory'])

    fig, axes = plt.subplots(3, 1, figsize=(10, 8), sharex=True)

    for ax, col, label, unit in [
        (axes[0], 0, 'X', 'px'),
        (axes[1], 1, 'Y', 'px'),
        (axes[2], 2, 'Angolo', 'rad'),
    ]:
        ax.plot(raw[:, col], label=f'Raw {label}', alpha=0.7, linewidth=1)
        ax.plot(smooth[:, col], label=f'Kalman {label}', linewidth=2)
        ax.set_ylabel(f'{label} ({unit})')
        ax.set_title(f'Traiettoria {label}')
        ax.legend()
        ax.grid(True, alpha=0.3)

    axes[2].set_xlabel('Frame')

    plt.tight_layout()
    return fig


def create_correction_plot(metrics):
    """Moto per frame grezzo vs corretto (dx, dy)"""
    if not metrics or not metrics.get('raw_motion'):
        return None

    raw = np.array(metrics['raw_motion'])
    corrected = np.array(metrics['corrected_motion'])

    fig, axes = plt.subplots(1, 2, figsize=(12, 4))

    for ax, col, label in [(axes[0], 0, 'dx'), (axes[1], 1, 'dy')]:
        ax.plot(raw[:, col], color='#d62728', alpha=0.6, label='Stimato')
        ax.plot(corrected[:, col], color='#1f77b4', alpha=0.8, label='Corretto')
        ax.axhline(0, color='black', linestyle='--', linewidth=0.8, alpha=0.5)
        ax.set_xlabel('Frame')
        ax.set_ylabel(f'{label} (px)')
        ax.set_title(f'Moto per frame {label}')
        ax.legend()
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def metrics_from_diagnostics(trajectory_log, smoothed_log, transform_log=None, new_transform_log=None):
    """Ricostruisce un dict di metriche (solo traiettorie) dai log diagnostici."""
    metrics = {
        'raw_trajectory': [tuple(row[1:]) for row in load_diagnostic_log(trajectory_log)],
        'smoothed_trajectory': [tuple(row[1:]) for row in load_diagnostic_log(smoothed_log)],
    }
    if transform_log is not None and new_transform_log is not None:
        metrics['raw_motion'] = [tuple(row[1:]) for row in load_diagnostic_log(transform_log)]
        metrics['corrected_motion'] = [tuple(row[1:]) for row in load_diagnostic_log(new_transform_log)]
    return metrics
