"""
Build the federation percentile snapshot from observed peer counts.

Input is a JSON file with either a list of peer counts or a list of
{"domain": ..., "peerCount": ...} objects (as exported from an instance
directory). Run after refreshing directory data.

Usage:
    python3 ingest_snapshots.py peer-counts.json
"""
import asyncio
import json
import sys
from pathlib import Path

from fedtrust.adapters.snapshot_store import build_percentiles, write_percentiles
from fedtrust.logging.event_logger import EventLogger
import config


def read_peer_counts(path: Path):
    """Extract integer peer counts from an exported directory file"""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("instances", [])

    counts = []
    for item in data:
        if isinstance(item, dict):
            item = item.get("peerCount", item.get("peer_count"))
        if isinstance(item, int) and not isinstance(item, bool) and item >= 0:
            counts.append(item)
    return counts


async def ingest_snapshots(source: Path, output: Path = config.FEDERATION_STATS_FILE):
    """Compute percentiles and write the snapshot file"""

    print("=" * 60)
    print("fedtrust Snapshot Ingestion")
    print("=" * 60)

    print(f"\nReading peer counts from {source}...")
    counts = read_peer_counts(source)
    print(f"  {len(counts)} instances with a peer count")

    if not counts:
        print("  ERROR: No usable peer counts found")
        return None

    percentiles = build_percentiles(counts)
    path, stats = write_percentiles(percentiles, output, sample_size=len(counts))

    for name, value in percentiles.model_dump().items():
        print(f"  {name}: {value:,.1f}")
    print(f"\nWrote {path}")

    await EventLogger().log_system_event(
        event_id=4003,
        message=f"Reference snapshot ingestion completed: {len(counts)} instances",
        details={
            "file": str(path),
            "sample_size": len(counts),
            "percentiles": percentiles.model_dump(),
        }
    )

    print("\n" + "=" * 60)
    print("Snapshot ingestion complete!")
    print("=" * 60)
    return stats


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(ingest_snapshots(Path(sys.argv[1])))
