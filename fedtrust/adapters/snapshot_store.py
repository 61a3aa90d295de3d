"""
Reference snapshot adapter for fedtrust.

Loads the federation percentile table and the curated reputation lists
from JSON files once, read-only. Missing or invalid files yield None and a
diagnostic; evaluators then fall back to their documented defaults.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field, ValidationError

import config
from fedtrust.schemas import FederationPercentiles, ReputationEntry, ReputationSnapshot


PERCENTILE_NAMES = ("p25", "p50", "p75", "p90", "p95")


class FederationStatsFile(BaseModel):
    """On-disk layout of federation-stats.json"""
    peerCounts: FederationPercentiles
    sampleSize: Optional[int] = None
    generatedAt: Optional[datetime] = None


class ReputationListFile(BaseModel):
    """On-disk layout of trusted-instances.json / problematic-instances.json"""
    version: str = "1.0"
    lastUpdated: Optional[str] = None
    source: Optional[str] = None
    instances: List[ReputationEntry] = Field(default_factory=list)


class SnapshotStore:
    """
    Read-only loader for reference snapshots.

    Each snapshot is read at most once per store; later calls return the
    cached value (or the cached absence). Construct one store per process
    and pass it to the pipeline.
    """

    def __init__(
        self,
        federation_stats_file: Path = None,
        trusted_file: Path = None,
        problematic_file: Path = None
    ):
        self.federation_stats_file = Path(federation_stats_file or config.FEDERATION_STATS_FILE)
        self.trusted_file = Path(trusted_file or config.TRUSTED_INSTANCES_FILE)
        self.problematic_file = Path(problematic_file or config.PROBLEMATIC_INSTANCES_FILE)

        self._percentiles: Optional[FederationPercentiles] = None
        self._reputation: Optional[ReputationSnapshot] = None
        self._loaded = {"percentiles": False, "reputation": False}
        self._diagnostics: List[str] = []

    @property
    def diagnostics(self) -> List[str]:
        return list(self._diagnostics)

    def percentiles(self) -> Optional[FederationPercentiles]:
        """Federation peer-count percentiles, or None if unavailable"""
        if not self._loaded["percentiles"]:
            stats = self._read(self.federation_stats_file, FederationStatsFile)
            self._percentiles = stats.peerCounts if stats else None
            self._loaded["percentiles"] = True
        return self._percentiles

    def reputation(self) -> Optional[ReputationSnapshot]:
        """
        Trusted and problematic reputation lists.

        Returns None unless both lists load.
        """
        if not self._loaded["reputation"]:
            trusted = self._read(self.trusted_file, ReputationListFile)
            problematic = self._read(self.problematic_file, ReputationListFile)

            if trusted is not None and problematic is not None:
                self._reputation = ReputationSnapshot(
                    trusted=_index(trusted.instances),
                    problematic=_index(problematic.instances),
                )
            self._loaded["reputation"] = True
        return self._reputation

    def reload(self) -> None:
        """Forget cached snapshots so the next access reads the files again"""
        self._percentiles = None
        self._reputation = None
        self._loaded = {"percentiles": False, "reputation": False}
        self._diagnostics = []

    def _read(self, path: Path, model):
        if not path.exists():
            self._diagnostics.append(f"Snapshot file not found: {path}")
            return None
        try:
            return model.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            self._diagnostics.append(f"Invalid snapshot file {path}: {e}")
            return None


def _index(entries: Iterable[ReputationEntry]) -> Dict[str, ReputationEntry]:
    return {entry.domain.lower(): entry for entry in entries}


# ==================== Snapshot building ====================

def build_percentiles(peer_counts: Iterable[int]) -> FederationPercentiles:
    """
    Compute a percentile snapshot from observed peer counts.

    Args:
        peer_counts: Peer counts of known instances (non-negative)

    Returns:
        FederationPercentiles

    Raises:
        ValueError: If no peer counts are given
    """
    counts = np.asarray([c for c in peer_counts if c is not None and c >= 0], dtype=float)
    if counts.size == 0:
        raise ValueError("at least one peer count is required")

    values = np.percentile(counts, [25, 50, 75, 90, 95])
    return FederationPercentiles(**{
        name: round(float(value), 1) for name, value in zip(PERCENTILE_NAMES, values)
    })


def write_percentiles(
    percentiles: FederationPercentiles,
    path: Path = None,
    sample_size: Optional[int] = None
) -> Tuple[Path, FederationStatsFile]:
    """Write a federation-stats.json snapshot and return (path, contents)"""
    path = Path(path or config.FEDERATION_STATS_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)

    stats = FederationStatsFile(
        peerCounts=percentiles,
        sampleSize=sample_size,
        generatedAt=datetime.utcnow(),
    )
    path.write_text(json.dumps(stats.model_dump(mode="json"), indent=2), encoding="utf-8")
    return path, stats
