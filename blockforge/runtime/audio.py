import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Set

logger = logging.getLogger(__name__)

BEEP_HISTORY = 64


@dataclass
class AudioState:
    """What should be audible; playback itself belongs to the host."""

    playing: Set[str] = field(default_factory=set)
    music: Optional[str] = None
    volume: float = 1.0
    beeps: Deque[tuple] = field(default_factory=lambda: deque(maxlen=BEEP_HISTORY))

    def play_sound(self, name: str) -> None:
        if not name:
            return
        logger.debug("Playing sound %s", name)
        self.playing.add(name)

    def stop_sound(self, name: str) -> None:
        self.playing.discard(name)

    def play_music(self, name: str) -> None:
        if not name:
            return
        logger.debug("Playing music %s", name)
        self.music = name

    def stop_music(self) -> None:
        self.music = None

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(1.0, volume))

    def beep(self, hz: float, duration: float) -> None:
        self.beeps.append((hz, duration))
