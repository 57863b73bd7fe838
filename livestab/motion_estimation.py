"""
Motion Estimation Module
Stima del movimento rigido tra frame consecutivi tramite feature tracking
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from .trajectory import Pose


logger = logging.getLogger(__name__)


class FrameSizeMismatchError(ValueError):
    """Il frame corrente non ha le stesse dimensioni del frame precedente."""


@dataclass(frozen=True, eq=False)
class MotionEstimate:
    """
    Trasformazione rigida (rotazione + traslazione) tra due frame.

    Attributes:
        matrix: Matrice affine 2x3 (float64)
        dx, dy: Traslazione in pixel
        da: Rotazione in radianti, in (-pi, pi]
    """
    matrix: np.ndarray
    dx: float
    dy: float
    da: float

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> 'MotionEstimate':
        """
        Decompone una matrice 2x3 in (dx, dy, da).

        L'angolo è recuperato dal blocco di rotazione con atan2, quindi
        resta sempre in (-pi, pi].
        """
        M = np.asarray(matrix, dtype=np.float64).reshape(2, 3).copy()
        M.setflags(write=False)
        dx = float(M[0, 2])
        dy = float(M[1, 2])
        da = math.atan2(M[1, 0], M[0, 0])
        return cls(matrix=M, dx=dx, dy=dy, da=da)

    @classmethod
    def identity(cls) -> 'MotionEstimate':
        return cls.from_matrix(np.eye(2, 3, dtype=np.float64))

    @property
    def delta(self) -> Pose:
        return Pose(self.dx, self.dy, self.da)


class MotionEstimator:
    """
    Stima il movimento globale della camera tra due frame in scala di grigi.

    Pipeline: corner Shi-Tomasi sul frame precedente, tracking con
    Lucas-Kanade piramidale, scarto dei punti persi e fit robusto (RANSAC)
    di una trasformazione rigida. Se la stima non è affidabile restituisce
    None: la sostituzione con l'ultima stima valida spetta al chiamante.
    """

    def __init__(self,
                 max_corners: int = 200,
                 quality_level: float = 0.01,
                 min_distance: float = 30,
                 win_size: int = 21,
                 max_level: int = 3,
                 min_matches: int = 3,
                 ransac_reproj_threshold: float = 3.0):
        """
        Inizializza il Motion Estimator.

        Args:
            max_corners: Numero massimo di keypoint da rilevare
            quality_level: Soglia di qualità relativa al corner più forte
            min_distance: Distanza minima tra keypoint (px)
            win_size: Finestra di ricerca Lucas-Kanade (px)
            max_level: Livelli della piramide Lucas-Kanade
            min_matches: Corrispondenze minime per tentare il fit
            ransac_reproj_threshold: Soglia di riproiezione RANSAC (px)
        """
        if max_corners <= 0:
            raise ValueError(f"max_corners deve essere positivo: {max_corners}")
        if min_matches < 2:
            raise ValueError(f"min_matches deve essere almeno 2: {min_matches}")

        self.max_corners = int(max_corners)
        self.quality_level = float(quality_level)
        self.min_distance = float(min_distance)
        self.win_size = int(win_size)
        self.max_level = int(max_level)
        self.min_matches = int(min_matches)
        self.ransac_reproj_threshold = float(ransac_reproj_threshold)

    def estimate(self,
                 prev_gray: np.ndarray,
                 curr_gray: np.ndarray) -> Optional[MotionEstimate]:
        """
        Stima la trasformazione rigida che porta prev_gray su curr_gray.

        Args:
            prev_gray: Frame precedente (t-1), singolo canale
            curr_gray: Frame corrente (t), singolo canale

        Returns:
            MotionEstimate oppure None se le corrispondenze sono
            insufficienti o il fit è degenere
        """
        self._check_inputs(prev_gray, curr_gray)

        p0_good, p1_good = self._track_features(prev_gray, curr_gray)
        if p0_good is None or len(p0_good) < self.min_matches:
            n = 0 if p0_good is None else len(p0_good)
            logger.debug(f"Corrispondenze insufficienti ({n} < {self.min_matches})")
            return None

        M, _inliers = cv2.estimateAffinePartial2D(
            p0_good,
            p1_good,
            method=cv2.RANSAC,
            ransacReprojThreshold=self.ransac_reproj_threshold,
        )

        if M is None:
            logger.debug("Fit della trasformazione degenere")
            return None

        rigid = self._remove_scale(M)
        if rigid is None:
            logger.debug("Blocco di rotazione nullo, stima scartata")
            return None

        return MotionEstimate.from_matrix(rigid)

    def _check_inputs(self, prev_gray: np.ndarray, curr_gray: np.ndarray):
        if prev_gray.ndim != 2 or curr_gray.ndim != 2:
            raise ValueError("I frame per la stima devono essere a singolo canale")
        if prev_gray.shape != curr_gray.shape:
            raise FrameSizeMismatchError(
                f"Dimensioni diverse: precedente={prev_gray.shape}, corrente={curr_gray.shape}"
            )

    def _track_features(self,
                        prev_gray: np.ndarray,
                        curr_gray: np.ndarray) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
        """Estrae corrispondenze con corner Shi-Tomasi + optical flow Lucas-Kanade."""
        p0 = cv2.goodFeaturesToTrack(
            prev_gray,
            maxCorners=self.max_corners,
            qualityLevel=self.quality_level,
            minDistance=self.min_distance,
        )

        if p0 is None or len(p0) == 0:
            return None, None

        criteria = (cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT, 30, 0.01)

        p1, st, _err = cv2.calcOpticalFlowPyrLK(
            prev_gray,
            curr_gray,
            p0,
            None,
            winSize=(self.win_size, self.win_size),
            maxLevel=self.max_level,
            criteria=criteria,
        )

        if p1 is None or st is None:
            return None, None

        # Scarta i punti il cui tracking è fallito
        st = st.reshape(-1) == 1
        p0_good = p0.reshape(-1, 2)[st]
        p1_good = p1.reshape(-1, 2)[st]

        return p0_good, p1_good

    @staticmethod
    def _remove_scale(M: np.ndarray) -> Optional[np.ndarray]:
        """
        Normalizza la scala uniforme stimata da estimateAffinePartial2D.

        La matrice parziale ha la forma [[s*cos, -s*sin, tx], [s*sin, s*cos, ty]];
        dividendo il blocco 2x2 per s resta una trasformazione rigida.
        """
        M = np.asarray(M, dtype=np.float64)
        scale = math.hypot(M[0, 0], M[1, 0])
        if not np.isfinite(scale) or scale < 1e-9:
            return None

        rigid = M.copy()
        rigid[:, :2] /= scale
        return rigid
