import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional


@dataclass
class RuntimeConfig:
    """Configuration for the game runtime."""

    gravity: float = -9.8
    floor_y: float = 0.5
    fixed_timestep: float = 1 / 60
    max_frame_dt: float = 0.05
    max_frames: Optional[int] = None
    realtime: bool = True
    seed: Optional[int] = None
    storage_path: Optional[str] = None

    def __post_init__(self):
        for name in ("gravity", "floor_y", "fixed_timestep", "max_frame_dt"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValueError(f"RuntimeConfig.{name} must be a finite number, got {value!r}.")
        if self.fixed_timestep <= 0:
            raise ValueError("RuntimeConfig.fixed_timestep must be positive.")
        if self.max_frame_dt <= 0:
            raise ValueError("RuntimeConfig.max_frame_dt must be positive.")
        if self.max_frames is not None and self.max_frames < 0:
            raise ValueError("RuntimeConfig.max_frames must not be negative.")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "RuntimeConfig":
        data = dict(data or {})
        known = {spec.name for spec in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown runtime settings: {', '.join(unknown)}.")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
