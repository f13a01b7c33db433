"""
Configuration for the gesture tracker.

Defaults match the stock camera setup; a YAML file may override any subset of
keys (see config.default.yaml at the repository root).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .classifier import DEFAULT_PINCH_THRESHOLD_PX


@dataclass(frozen=True)
class CameraConfig:
    index: int = 0
    width: int = 1280
    height: int = 720
    mirror: bool = True  # flip the displayed frame only; detection sees raw frames


@dataclass(frozen=True)
class DetectorConfig:
    max_num_hands: int = 2
    model_complexity: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    tasks_model_path: str = "models/hand_landmarker.task"


@dataclass(frozen=True)
class ClassifierConfig:
    # Pixel units at the capture resolution; rescale when changing camera size.
    pinch_threshold_px: float = DEFAULT_PINCH_THRESHOLD_PX


@dataclass(frozen=True)
class LoopConfig:
    fps: float = 30.0


@dataclass(frozen=True)
class AudioConfig:
    enabled: bool = True
    sample_rate: int = 44100
    volume: float = 0.3


@dataclass(frozen=True)
class AppConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to a YAML file. If None, built-in defaults are returned.

    Returns:
        AppConfig with file values layered over the defaults.
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level")
    return config_from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    cfg = _merge(AppConfig(), data, "config")
    _validate(cfg)
    return cfg


def _merge(obj, data: Dict[str, Any], where: str):
    known = {f.name: f for f in fields(obj)}
    updates: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ValueError(f"Unknown key '{key}' in {where}. Available: {sorted(known)}")
        current = getattr(obj, key)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ValueError(f"'{where}.{key}' must be a mapping")
            updates[key] = _merge(current, value, f"{where}.{key}")
        else:
            updates[key] = type(current)(value)
    return replace(obj, **updates)


def _validate(cfg: AppConfig) -> None:
    if cfg.classifier.pinch_threshold_px <= 0:
        raise ValueError("classifier.pinch_threshold_px must be positive")
    if cfg.loop.fps <= 0:
        raise ValueError("loop.fps must be positive")
    if not (1 <= cfg.detector.max_num_hands <= 4):
        raise ValueError("detector.max_num_hands must be between 1 and 4")
