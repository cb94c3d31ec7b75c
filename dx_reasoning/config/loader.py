"""DxReasoning — Завантаження конфігурації"""
from dataclasses import asdict
from enum import Enum
from pathlib import Path

import yaml

from .settings import DxConfig


def _plain(value):
    """Enum → str, щоб YAML лишався читабельним"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def save_yaml(config: DxConfig, path: str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(_plain(asdict(config)), f, default_flow_style=False)


def load_yaml(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def save_config(config: DxConfig, path: str) -> None:
    save_yaml(config, path)


def load_config(path: str) -> DxConfig:
    return DxConfig.from_dict(load_yaml(path))
