"""Waveform animation model for the call widget.

Five overlaid sine waves sit flat on the baseline until the agent speaks;
while it speaks each wave's phase advances per frame and its amplitude
breathes.  This module computes the geometry; drawing is left to the
front-end.
"""

import math
from dataclasses import dataclass, replace

POINT_STEP = 2
LINE_WIDTH = 2.5
SPEAKING_GLOW = 18


@dataclass
class Wave:
    color: str
    alpha: float
    speed: float
    amplitude: float
    freq: float
    phase: float


DEFAULT_WAVES = (
    Wave("#c026d3", 0.70, 0.018, 0.38, 2.2, 0.0),
    Wave("#e879f9", 0.50, 0.022, 0.28, 3.1, 1.2),
    Wave("#67e8f9", 0.60, 0.015, 0.35, 2.6, 2.5),
    Wave("#22d3ee", 0.45, 0.020, 0.22, 4.0, 0.8),
    Wave("#a5f3fc", 0.35, 0.012, 0.18, 1.8, 3.1),
)


@dataclass(frozen=True)
class WaveFrame:
    color: str
    alpha: float
    glow: int
    points: list[tuple[float, float]]


class Waveform:
    def __init__(self, waves=DEFAULT_WAVES):
        self.waves = [replace(w) for w in waves]

    def amplitude_for(self, index: int, center_y: float, speaking: bool) -> float:
        if not speaking:
            return 0.0
        wave = self.waves[index]
        return center_y * wave.amplitude * (0.8 + 0.2 * math.sin(wave.phase * 0.7 + index))

    def frame(self, width: float, height: float, speaking: bool) -> list[WaveFrame]:
        """Advance one animation frame and return the points for every wave."""
        center_y = height / 2
        frames = []
        for i, wave in enumerate(self.waves):
            if speaking:
                wave.phase += wave.speed
            amplitude = self.amplitude_for(i, center_y, speaking)
            points = []
            x = 0
            while x <= width:
                t = (x / width) * math.pi * 2 * wave.freq + wave.phase if width else wave.phase
                envelope = math.sin((x / width) * math.pi) if width else 0.0
                points.append((float(x), center_y + math.sin(t) * amplitude * envelope))
                x += POINT_STEP
            frames.append(WaveFrame(
                color=wave.color,
                alpha=wave.alpha if speaking else 0.0,
                glow=SPEAKING_GLOW if speaking else 0,
                points=points,
            ))
        return frames
