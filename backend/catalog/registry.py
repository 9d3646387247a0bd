from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from catalog.types import DatasetConfig
from settings import get_settings


DEFAULT_DATASET_ID = "brasilia_demo"


def _datasets_root() -> Path:
    return get_settings().datasets_root


class UnknownDataset(LookupError):
    def __init__(self, dataset_id: str):
        super().__init__(f"Unknown dataset: {dataset_id}")
        self.dataset_id = dataset_id


@dataclass(frozen=True)
class DatasetEntry:
    config: DatasetConfig
    # Absolute path to dataset.yaml on disk (useful for debugging).
    path: Path

    def resolve(self, rel: str) -> Path:
        """
        Resolve a source path: repo-relative first, then relative to dataset.yaml.
        """
        rel = (rel or "").lstrip("/")
        p = get_settings().repo_root / rel
        if p.exists():
            return p
        return self.path.parent / rel


def _iter_dataset_yaml_files() -> Iterable[Path]:
    root = _datasets_root()
    if not root.exists():
        return []
    # Convention: datasets/*/dataset.yaml
    return root.glob("*/dataset.yaml")


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid dataset yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_registry() -> dict[str, DatasetEntry]:
    out: dict[str, DatasetEntry] = {}
    for p in sorted(_iter_dataset_yaml_files(), key=lambda x: str(x)):
        cfg = DatasetConfig.model_validate(_load_yaml(p))
        if not cfg.enabled:
            continue
        if cfg.source.type != "demo" and not cfg.source.path:
            raise ValueError(f"Dataset source `{cfg.source.type}` needs a `path`: {p}")
        # Fail at load time rather than on the first request.
        cfg.clustering.to_options()
        out[cfg.id] = DatasetEntry(config=cfg, path=p)
    return out


def default_dataset_id() -> str:
    env = get_settings().default_dataset
    reg = get_registry()
    if env and env in reg:
        return env
    if DEFAULT_DATASET_ID in reg or not reg:
        return DEFAULT_DATASET_ID
    # Fall back to stable ordering.
    return next(iter(reg.keys()))


def list_datasets() -> list[DatasetConfig]:
    return [e.config for e in get_registry().values()]


def get_dataset(dataset_id: str | None) -> DatasetEntry:
    reg = get_registry()
    did = (dataset_id or "").strip() or default_dataset_id()
    entry = reg.get(did)
    if entry is None:
        raise UnknownDataset(did)
    return entry


def clear_registry_cache() -> None:
    """
    Clear in-memory dataset registry cache.

    Dataset YAML changes are otherwise not picked up until the process restarts.
    """
    get_registry.cache_clear()
