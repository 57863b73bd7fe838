"""
Video Stabilizer - Pipeline Principale
Integra tutti i moduli per la stabilizzazione video live, un frame alla volta
"""

import logging
import time
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from .config import DEFAULT_CONFIG, merge_config
from .diagnostics import TrajectoryLogger
from .motion_compensation import MotionCompensator
from .motion_estimation import FrameSizeMismatchError, MotionEstimate, MotionEstimator
from .trajectory import SessionState, UNINITIALIZED
from .trajectory_smoothing import TrajectoryKalmanFilter


logger = logging.getLogger(__name__)


class VideoStabilizer:
    """
    Pipeline completa per la stabilizzazione video causale.

    Fasi per ogni frame:
    1. Stima del movimento rigido (Shi-Tomasi + Lucas-Kanade + RANSAC)
    2. Accumulo della traiettoria
    3. Filtraggio di Kalman per asse
    4. Sintesi della trasformazione correttiva
    5. Warp del frame precedente, crop e resize

    Un'istanza corrisponde a uno stream: i frame vanno presentati uno alla
    volta, in ordine di cattura. L'istanza è chiamabile, quindi può essere
    passata direttamente come callback per frame.
    """

    def __init__(self, config: Optional[dict] = None):
        """
        Inizializza il Video Stabilizer con la configurazione fornita.

        Args:
            config: Dizionario di configurazione (opzionale, anche parziale)
        """
        config = merge_config(DEFAULT_CONFIG, config)
        self.config = config

        # Estrai le sottosezioni della configurazione
        me_config = config['motion_estimation']
        ts_config = config['trajectory_smoothing']
        mc_config = config['motion_compensation']

        self.motion_estimator = MotionEstimator(
            max_corners=me_config['max_corners'],
            quality_level=me_config['quality_level'],
            min_distance=me_config['min_distance'],
            win_size=me_config['win_size'],
            max_level=me_config['max_level'],
            min_matches=me_config['min_matches'],
            ransac_reproj_threshold=me_config['ransac_reproj_threshold'],
        )

        self.trajectory_filter = TrajectoryKalmanFilter(
            process_noise=ts_config['process_noise'],
            measurement_noise=ts_config['measurement_noise'],
        )

        self.motion_compensator = MotionCompensator(
            horizontal_crop=mc_config['horizontal_crop'],
        )

        self.session = SessionState()

        self.diagnostics: Optional[TrajectoryLogger] = None
        if config.get('diagnostics_dir'):
            self.diagnostics = TrajectoryLogger(config['diagnostics_dir'])

        self.metrics = self._empty_metrics()

        logger.info("📊 Configurazione caricata:")
        logger.info(
            f"   Motion Estimation: max_corners={me_config['max_corners']}, "
            f"quality_level={me_config['quality_level']}, "
            f"min_distance={me_config['min_distance']}, "
            f"ransac_threshold={me_config['ransac_reproj_threshold']}"
        )
        logger.info(
            f"   Trajectory Smoothing: Q={ts_config['process_noise']}, "
            f"R={ts_config['measurement_noise']}"
        )
        logger.info(f"   Motion Compensation: horizontal_crop={mc_config['horizontal_crop']}px")

    def _empty_metrics(self) -> dict:
        return {
            # raw_motion: moto incrementale stimato (dx, dy, da), dopo l'eventuale fallback
            # corrected_motion: moto incrementale effettivamente applicato
            'raw_motion': [],
            'corrected_motion': [],
            'raw_trajectory': [],
            'smoothed_trajectory': [],
            'frame_times': [],
            'fallback_count': 0,
            'config': self.config,
        }

    @property
    def state(self) -> str:
        return self.session.state

    def reset(self):
        """Scarta lo stato della sessione per iniziare un nuovo stream."""
        self.session = SessionState()
        self.trajectory_filter.reset()
        self.metrics = self._empty_metrics()

    def close(self):
        """Chiude i log diagnostici (se attivi)."""
        if self.diagnostics is not None:
            self.diagnostics.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __call__(self, frame: np.ndarray) -> np.ndarray:
        return self.process_frame(frame)

    def process_frame(self, frame: np.ndarray) -> np.ndarray:
        """
        Stabilizza il frame successivo dello stream.

        Il contenuto di `frame` viene sostituito in place con il frame
        stabilizzato (stesse dimensioni). Il primo frame viene solo
        memorizzato come riferimento e restituito invariato.

        Args:
            frame: Frame BGR corrente (modificato in place)

        Returns:
            frame: Lo stesso buffer, con il frame stabilizzato
        """
        if frame.ndim != 3 or frame.shape[2] != 3:
            raise ValueError(f"Atteso un frame BGR a 3 canali, ricevuto shape={frame.shape}")

        curr_gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)

        session = self.session
        if session.state == UNINITIALIZED:
            session.seed(frame, curr_gray)
            return frame

        if frame.shape != session.prev_frame.shape:
            raise FrameSizeMismatchError(
                f"Dimensioni del frame cambiate: precedente={session.prev_frame.shape}, "
                f"corrente={frame.shape}"
            )

        start_time = time.time()

        # Fase 1: stima del movimento, con fallback sull'ultima stima valida
        estimate = self.motion_estimator.estimate(session.prev_gray, curr_gray)
        if estimate is None:
            estimate = self._fallback_estimate()
        session.last_estimate = estimate

        # Fase 2: accumulo della traiettoria
        trajectory = session.accumulate(estimate.delta)

        # Fase 3: filtro di Kalman
        smoothed = self.trajectory_filter.update(trajectory)

        # Fase 4: trasformazione correttiva
        corrected = self.motion_compensator.corrected_delta(estimate, trajectory, smoothed)
        transform = self.motion_compensator.build_transform(corrected)

        # Fase 5: warp del frame precedente, crop e resize
        stabilized = self.motion_compensator.compose(session.prev_frame, transform)

        # Il prossimo confronto usa gli input originali, non il frame warpato
        session.advance(frame, curr_gray)

        frame_time = time.time() - start_time
        self._record(session.frame_index, estimate, trajectory, smoothed, corrected, frame_time)

        frame[...] = stabilized
        return frame

    def _fallback_estimate(self) -> MotionEstimate:
        """Riusa l'ultima stima valida (identità se non ne esiste ancora una)."""
        self.metrics['fallback_count'] += 1
        if self.session.last_estimate is None:
            logger.debug(f"Frame {self.session.frame_index + 1}: stima fallita, uso l'identità")
            return MotionEstimate.identity()
        logger.debug(f"Frame {self.session.frame_index + 1}: stima fallita, riuso l'ultima trasformazione")
        return self.session.last_estimate

    def _record(self, frame_idx, estimate, trajectory, smoothed, corrected, frame_time):
        raw = estimate.delta.as_tuple()
        self.metrics['raw_motion'].append(raw)
        self.metrics['corrected_motion'].append(corrected.as_tuple())
        self.metrics['raw_trajectory'].append(trajectory.as_tuple())
        self.metrics['smoothed_trajectory'].append(smoothed.as_tuple())
        self.metrics['frame_times'].append(float(frame_time))

        if self.diagnostics is not None:
            self.diagnostics.log_frame(
                frame_idx,
                raw,
                trajectory.as_tuple(),
                smoothed.as_tuple(),
                corrected.as_tuple(),
            )

    def stabilize_video(self,
                        input_path: str,
                        output_path: str,
                        show_progress: bool = True,
                        progress_callback=None) -> bool:
        """
        Stabilizza un video completo in una sola passata.

        Args:
            input_path: Path del video di input
            output_path: Path del video stabilizzato di output
            show_progress: Se True, mostra il progresso
            progress_callback: callable(float 0→1) chiamato ad ogni step di avanzamento

        Returns:
            success: True se la stabilizzazione è completata con successo
        """
        # Nuovo stream: scarta lo stato precedente
        self.reset()

        cap = cv2.VideoCapture(str(input_path))
        if not cap.isOpened():
            logger.error(f"Impossibile aprire il video: {input_path}")
            return False

        fps = cap.get(cv2.CAP_PROP_FPS)
        # Fallback a 30 fps se il valore letto è invalido
        if not fps or fps <= 0 or fps > 240:
            logger.warning(f"FPS invalido ({fps}), uso 30 fps di default")
            fps = 30

        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))

        logger.info(f"Video: {width}x{height} @ {fps:.2f}fps, {total_frames} frames")

        output_path_obj = Path(output_path)
        output_path_obj.parent.mkdir(parents=True, exist_ok=True)

        fourcc = cv2.VideoWriter_fourcc(*'mp4v')
        out = cv2.VideoWriter(str(output_path), fourcc, fps, (width, height))

        if not out.isOpened():
            logger.error(f"Impossibile creare il video di output: {output_path}")
            cap.release()
            return False

        frame_idx = 0
        try:
            while True:
                ret, frame = cap.read()
                if not ret:
                    break

                self.process_frame(frame)
                out.write(frame)
                frame_idx += 1

                if frame_idx % 10 == 0:
                    if progress_callback is not None:
                        progress_callback(min(1.0, frame_idx / max(total_frames, 1)))
                    if show_progress and frame_idx % 30 == 0:
                        self._log_progress(frame_idx, total_frames)
        finally:
            cap.release()
            out.release()

        if progress_callback is not None:
            progress_callback(1.0)

        logger.info(f"✅ Stabilizzazione completata: {frame_idx} frames -> {output_path}")
        if self.metrics['fallback_count']:
            logger.info(f"   Stime fallite (riuso ultima trasformazione): {self.metrics['fallback_count']}")
        return True

    def _log_progress(self, frame_idx: int, total_frames: int):
        progress = (frame_idx / max(total_frames, 1)) * 100
        x, y, a = self.session.trajectory.as_tuple()
        logger.info(
            f"Progresso: {progress:.1f}% - "
            f"Traiettoria: ({x:.2f}, {y:.2f}) px, {a:.4f} rad"
        )

    def get_metrics(self) -> dict:
        """
        Restituisce le metriche raccolte durante la stabilizzazione.

        Returns:
            dict: Dizionario contenente:
                - raw_motion: Lista (dx, dy, da) stimati per frame
                - corrected_motion: Lista (dx, dy, da) applicati per frame
                - raw_trajectory: Lista (x, y, a) traiettoria accumulata
                - smoothed_trajectory: Lista (x, y, a) traiettoria filtrata
                - rms_dx, rms_dy, rms_angle: RMS del moto incrementale grezzo
                - jitter_reduction_x/y/angle: Riduzione varianza del moto (%)
                - max_offset_x, max_offset_y: Massima correzione applicata (px)
                - avg_frame_time, total_processing_time: Tempi (s)
                - num_frames: Frame processati (il primo frame non conta)
                - fallback_count: Stime fallite sostituite dall'ultima valida
                - config: Configurazione usata
        """
        if not self.metrics['raw_trajectory']:
            return {'error': 'Nessuna metrica raccolta. Processa almeno due frame'}

        raw_motion = np.array(self.metrics['raw_motion'])
        raw_traj = np.array(self.metrics['raw_trajectory'])
        smooth_traj = np.array(self.metrics['smoothed_trajectory'])

        rms = np.sqrt(np.mean(raw_motion ** 2, axis=0))

        def calculate_jitter_reduction(raw_abs, smooth_abs):
            if len(raw_abs) < 3:
                return np.zeros(3)
            raw_var = np.var(np.diff(raw_abs, axis=0), axis=0)
            smooth_var = np.var(np.diff(smooth_abs, axis=0), axis=0)
            reduction = np.zeros(3)
            for i in range(3):
                if raw_var[i] > 0:
                    reduction[i] = (1.0 - smooth_var[i] / raw_var[i]) * 100.0
            return reduction

        jitter_reduction = calculate_jitter_reduction(raw_traj, smooth_traj)

        offsets = smooth_traj - raw_traj

        return {
            'raw_motion': list(self.metrics['raw_motion']),
            'corrected_motion': list(self.metrics['corrected_motion']),
            'raw_trajectory': list(self.metrics['raw_trajectory']),
            'smoothed_trajectory': list(self.metrics['smoothed_trajectory']),
            'rms_dx': float(rms[0]),
            'rms_dy': float(rms[1]),
            'rms_angle': float(rms[2]),
            'jitter_reduction_x': float(jitter_reduction[0]),
            'jitter_reduction_y': float(jitter_reduction[1]),
            'jitter_reduction_angle': float(jitter_reduction[2]),
            'max_offset_x': float(np.max(np.abs(offsets[:, 0]))),
            'max_offset_y': float(np.max(np.abs(offsets[:, 1]))),
            'avg_frame_time': float(np.mean(self.metrics['frame_times'])),
            'total_processing_time': float(np.sum(self.metrics['frame_times'])),
            'num_frames': len(raw_traj),
            'fallback_count': self.metrics['fallback_count'],
            'config': self.metrics['config'],
        }
