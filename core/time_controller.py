"""
SimClock — Gestione tempo simulato condivisa tra i tre livelli.

Ogni livello ha il proprio orologio:
    universe_time  miliardi di anni (Gyr), avanza solo al livello UNIVERSE
    galaxy_time    tempo di rotazione del disco, avanza solo al livello GALAXY
    il livello SYSTEM non ha un orologio: la fisica riceve direttamente il dt

Il dt di frame viene limitato a MAX_FRAME_DT prima di essere scalato, così
un frame lento (o una finestra in background) non produce salti enormi.

Velocità disponibili (fattore di scala del tempo):
    TIME_SCALES = [0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5]

Controllo:
    clock.speed_up()     — prossimo step di velocità (riprende se in pausa)
    clock.speed_down()   — step indietro
    clock.toggle_pause()
    clock.step(dt_wall, level) — chiamato ogni frame, ritorna il dt simulato
"""

from __future__ import annotations
from typing import Optional

from core.config import MAX_FRAME_DT, SYSTEM_TIME_MULTIPLIER
from core.types import ViewLevel


# Passi del fattore di scala del tempo
TIME_SCALES = [0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0]

# Età dell'universo al caricamento normale e dopo un Big Bang
PRESENT_DAY_GYR = 13.8
BIG_BANG_GYR = 0.0

# Durata del lampo del Big Bang (secondi reali)
FLASH_FADE_RATE = 0.5


class SimClock:
    """
    Tempo simulato con avanzamento per frame.

    Parametri
    ----------
    time_scale    : fattore iniziale (SimConfig.time_scale)
    universe_time : età iniziale dell'universo in Gyr
    """

    def __init__(self, time_scale: float = 0.1,
                 universe_time: float = PRESENT_DAY_GYR):
        self.universe_time = universe_time
        self.galaxy_time = 0.0
        self.time_scale = time_scale
        self.paused = False
        self.flash = 0.0

    def __repr__(self) -> str:
        return (f"<SimClock {self.universe_time:.3f} Gyr, galaxy t={self.galaxy_time:.2f}, "
                f"{self.speed_label}>")

    # ── Proprietà ────────────────────────────────────────────────────────────

    @property
    def speed_label(self) -> str:
        if self.paused:
            return "PAUSED"
        return f"{self.time_scale:g}×"

    def _nearest_step(self) -> int:
        return min(range(len(TIME_SCALES)),
                   key=lambda i: abs(TIME_SCALES[i] - self.time_scale))

    # ── Controlli ────────────────────────────────────────────────────────────

    def speed_up(self):
        """Aumenta velocità (o riprende se in pausa)."""
        if self.paused:
            self.paused = False
            return
        i = self._nearest_step()
        if TIME_SCALES[i] <= self.time_scale and i < len(TIME_SCALES) - 1:
            i += 1
        self.time_scale = TIME_SCALES[i]

    def speed_down(self):
        """Diminuisce velocità fino al passo minimo."""
        i = self._nearest_step()
        if TIME_SCALES[i] >= self.time_scale and i > 0:
            i -= 1
        self.time_scale = TIME_SCALES[i]

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    def reset(self, universe_time: float = PRESENT_DAY_GYR,
              time_scale: Optional[float] = None):
        """Nuovo universo: azzera il tempo di galassia e toglie la pausa."""
        self.universe_time = universe_time
        self.galaxy_time = 0.0
        self.paused = False
        if time_scale is not None:
            self.time_scale = time_scale

    def big_bang(self):
        self.reset(BIG_BANG_GYR)
        self.flash = 1.0

    # ── Aggiornamento frame ───────────────────────────────────────────────────

    @staticmethod
    def clamp_dt(dt_wall: float) -> float:
        return min(max(dt_wall, 0.0), MAX_FRAME_DT)

    def step(self, dt_wall: float, level: ViewLevel) -> float:
        """
        Avanza l'orologio del livello attivo.
        Ritorna il dt simulato da passare alla fisica (0 in pausa);
        al livello SYSTEM è già moltiplicato per SYSTEM_TIME_MULTIPLIER.
        """
        dt = self.clamp_dt(dt_wall)
        if self.flash > 0.0:
            self.flash = max(0.0, self.flash - dt * FLASH_FADE_RATE)
        if self.paused:
            return 0.0

        sim_dt = dt * self.time_scale
        if level == ViewLevel.UNIVERSE:
            self.universe_time += sim_dt
        elif level == ViewLevel.GALAXY:
            self.galaxy_time += sim_dt
        else:
            sim_dt *= SYSTEM_TIME_MULTIPLIER
        return sim_dt
