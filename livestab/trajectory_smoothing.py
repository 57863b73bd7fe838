"""
Trajectory Smoothing Module
Filtraggio causale della traiettoria con un filtro di Kalman scalare per asse
"""

from typing import Optional

from .trajectory import Pose


# Valori calibrati per stream live
DEFAULT_PROCESS_NOISE = 4e-3
DEFAULT_MEASUREMENT_NOISE = 0.25


class TrajectoryKalmanFilter:
    """
    Banco di tre filtri di Kalman scalari indipendenti (x, y, angolo).

    Modello a valore costante: lo stato vero non cambia tra due passi se
    non per il rumore di processo. Nessuna covarianza tra gli assi.
    Il filtro è causale (nessun look-ahead), quindi adatto allo streaming,
    a differenza della media mobile su finestra.
    """

    def __init__(self,
                 process_noise: float = DEFAULT_PROCESS_NOISE,
                 measurement_noise: float = DEFAULT_MEASUREMENT_NOISE):
        """
        Inizializza il filtro.

        Args:
            process_noise: Fiducia nell'ipotesi "valore costante". Più basso
                = traiettoria più liscia ma meno reattiva
            measurement_noise: Fiducia nella misura grezza per frame. Più
                basso = più reattivo ma meno liscio
        """
        if process_noise <= 0:
            raise ValueError(f"process_noise deve essere positivo: {process_noise}")
        if measurement_noise <= 0:
            raise ValueError(f"measurement_noise deve essere positivo: {measurement_noise}")

        self.process_noise = float(process_noise)
        self.measurement_noise = float(measurement_noise)
        self.Q = Pose.uniform(self.process_noise)
        self.R = Pose.uniform(self.measurement_noise)

        self.X: Optional[Pose] = None  # stima a posteriori
        self.P: Optional[Pose] = None  # varianza dell'errore a posteriori
        self.gain: Optional[Pose] = None

    @property
    def initialized(self) -> bool:
        return self.X is not None

    def reset(self):
        """Riporta il filtro allo stato non inizializzato."""
        self.X = None
        self.P = None
        self.gain = None

    def update(self, z: Pose) -> Pose:
        """
        Esegue un passo predict/correct con la misura z.

        Al primo campione il filtro viene solo inizializzato a X=(0,0,0),
        P=(1,1,1), indipendentemente dal valore di z.

        Args:
            z: Traiettoria grezza accumulata al frame corrente

        Returns:
            X: Traiettoria smussata
        """
        if not self.initialized:
            self.X = Pose(0.0, 0.0, 0.0)
            self.P = Pose(1.0, 1.0, 1.0)
            return self.X

        # Predict: X_(k) = X(k-1), P_(k) = P(k-1) + Q
        X_ = self.X
        P_ = self.P + self.Q

        # Correct: K = P_ / (P_ + R)
        K = P_ / (P_ + self.R)
        self.X = X_ + K * (z - X_)
        self.P = (Pose(1.0, 1.0, 1.0) - K) * P_
        self.gain = K

        return self.X
