"""Configuration helpers for scene controllers."""

from __future__ import annotations

import copy
from dataclasses import dataclass


@dataclass
class SceneConfig:
    """Tunable limits shared by the editor operations."""

    history_capacity: int = 50
    epsilon: float = 1e-9
    min_radius: float = 0.01
    min_hyperbola_constant: float = 0.01
    # Seconds a default-speed animation needs to sweep min..max.
    animation_sweep_seconds: float = 5.0
    min_trace_steps: int = 2
    max_trace_steps: int = 400
    default_trace_steps: int = 20
    min_zoom: float = 0.1
    max_zoom: float = 10.0


_SCENE_CONFIG = SceneConfig()


def get_scene_config() -> SceneConfig:
    return copy.deepcopy(_SCENE_CONFIG)


def set_scene_config(config: SceneConfig) -> None:
    global _SCENE_CONFIG
    _SCENE_CONFIG = copy.deepcopy(config)


__all__ = ["SceneConfig", "get_scene_config", "set_scene_config"]
