"""
Trajectory Module
Stato della sessione di stabilizzazione e accumulo della traiettoria
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


# Stati della sessione (per stream)
UNINITIALIZED = 'uninitialized'
SEEDED = 'seeded'
STEADY = 'steady'


@dataclass(frozen=True)
class Pose:
    """
    Spostamento rigido 2D: traslazione (x, y) in pixel e rotazione a in radianti.

    Usato sia per i delta frame-to-frame sia per la traiettoria assoluta.
    Le operazioni aritmetiche sono componente per componente.
    """
    x: float = 0.0
    y: float = 0.0
    a: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> 'Pose':
        """Pose con lo stesso valore sui tre assi (es. rumore Q o R)."""
        return cls(value, value, value)

    def __add__(self, other: 'Pose') -> 'Pose':
        return Pose(self.x + other.x, self.y + other.y, self.a + other.a)

    def __sub__(self, other: 'Pose') -> 'Pose':
        return Pose(self.x - other.x, self.y - other.y, self.a - other.a)

    def __mul__(self, other: 'Pose') -> 'Pose':
        return Pose(self.x * other.x, self.y * other.y, self.a * other.a)

    def __truediv__(self, other: 'Pose') -> 'Pose':
        return Pose(self.x / other.x, self.y / other.y, self.a / other.a)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (float(self.x), float(self.y), float(self.a))


class SessionState:
    """
    Stato persistente per tutta la durata dello stream.

    Contiene il frame precedente (colore e grigio), l'ultima stima di
    movimento valida e la traiettoria accumulata. Viene creato una volta
    per run di stabilizzazione e scartato a fine stream.
    """

    def __init__(self):
        self.prev_frame: Optional[np.ndarray] = None
        self.prev_gray: Optional[np.ndarray] = None
        # Ultima stima valida (fallback in caso di stima fallita)
        self.last_estimate = None
        self.trajectory = Pose()
        # Numero di frame processati (il primo frame non conta)
        self.frame_index = 0

    @property
    def state(self) -> str:
        if self.prev_frame is None:
            return UNINITIALIZED
        if self.frame_index == 0:
            return SEEDED
        return STEADY

    def seed(self, frame: np.ndarray, gray: np.ndarray):
        """Memorizza il primo frame come riferimento (nessuna correzione possibile)."""
        self.prev_frame = frame.copy()
        self.prev_gray = gray.copy()

    def advance(self, frame: np.ndarray, gray: np.ndarray):
        """
        Sostituisce il frame precedente con gli input originali (non warpati)
        del frame corrente, così la stima successiva lavora su immagini vere.
        """
        self.prev_frame = frame.copy()
        self.prev_gray = gray.copy()
        self.frame_index += 1

    def accumulate(self, delta: Pose) -> Pose:
        """
        Integra un delta nella traiettoria assoluta.

        Accumulo scalare semplice: l'angolo non viene normalizzato, quindi
        su stream lunghi con bias rotazionale può derivare senza limite.

        Args:
            delta: Movimento (dx, dy, da) accettato per il frame corrente

        Returns:
            trajectory: Traiettoria accumulata aggiornata
        """
        self.trajectory = self.trajectory + delta
        return self.trajectory
