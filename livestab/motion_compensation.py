"""
Motion Compensation Module
Sintesi della trasformazione correttiva e composizione del frame stabilizzato
"""

import math
from typing import Tuple

import cv2
import numpy as np

from .motion_estimation import MotionEstimate
from .trajectory import Pose


class MotionCompensator:
    """
    Classe per la compensazione del movimento e stabilizzazione dei frame.

    Il frame precedente viene warpato con la trasformazione corretta,
    poi si ritaglia un bordo fisso e si ridimensiona alla dimensione
    originale per nascondere i pixel neri introdotti dal warp.
    """

    def __init__(self, horizontal_crop: int = 20):
        """
        Inizializza il Motion Compensator.

        Args:
            horizontal_crop: Pixel ritagliati a sinistra e a destra. Il
                crop verticale è scalato con l'aspect ratio del frame
        """
        if horizontal_crop < 0:
            raise ValueError(f"horizontal_crop non può essere negativo: {horizontal_crop}")
        self.horizontal_crop = int(horizontal_crop)

    @staticmethod
    def corrected_delta(estimate: MotionEstimate,
                        trajectory: Pose,
                        smoothed: Pose) -> Pose:
        """
        Calcola il delta per frame corretto.

        La differenza tra traiettoria smussata e grezza viene sommata al
        delta grezzo del frame corrente (non alla traiettoria accumulata).

        Args:
            estimate: Stima del movimento del frame corrente
            trajectory: Traiettoria grezza accumulata
            smoothed: Traiettoria smussata

        Returns:
            delta: (dx, dy, da) corretti
        """
        diff = smoothed - trajectory
        return estimate.delta + diff

    @staticmethod
    def build_transform(delta: Pose) -> np.ndarray:
        """Ricostruisce la matrice affine 2x3 dal delta corretto."""
        cos_a = math.cos(delta.a)
        sin_a = math.sin(delta.a)
        return np.array([
            [cos_a, -sin_a, delta.x],
            [sin_a,  cos_a, delta.y],
        ], dtype=np.float64)

    def border_crop(self, rows: int, cols: int) -> Tuple[int, int]:
        """
        Restituisce il crop (verticale, orizzontale) in pixel.

        Il crop verticale mantiene le proporzioni: horizontal_crop * rows / cols
        (divisione intera).
        """
        vertical = self.horizontal_crop * rows // cols
        return vertical, self.horizontal_crop

    def compose(self, prev_frame: np.ndarray, transform: np.ndarray) -> np.ndarray:
        """
        Applica la trasformazione al frame precedente, ritaglia e ridimensiona.

        Args:
            prev_frame: Frame a colori precedente (non warpato)
            transform: Matrice 2x3 correttiva

        Returns:
            stabilized_frame: Frame stabilizzato, stesse dimensioni dell'input
        """
        h, w = prev_frame.shape[:2]
        vert, horiz = self.border_crop(h, w)

        if 2 * vert >= h or 2 * horiz >= w:
            raise ValueError(
                f"Frame {w}x{h} troppo piccolo per un crop di {horiz}x{vert} px"
            )

        warped = cv2.warpAffine(prev_frame, transform, (w, h))

        # Ritaglia il bordo con i pixel indefiniti del warp
        cropped = warped[vert:h - vert, horiz:w - horiz]

        # Ridimensiona alla dimensione originale
        return cv2.resize(cropped, (w, h))
