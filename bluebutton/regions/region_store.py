"""
Region Store - Persistent storage for named capture regions.

Regions are kept in a JSON file in the user's data directory so that a
rectangle selected once can be re-analyzed later, possibly after the
monitor layout changed. Loading and saving are explicit calls; the store
never touches disk on its own.
"""

import json
import shutil
from pathlib import Path
from typing import Optional, Dict, Any, List
from datetime import datetime
from threading import Lock

from bluebutton.geometry.models import CaptureRegion, InvalidRegionError
from bluebutton.utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = "1.0"


class RegionStore:
    """
    Named collection of CaptureRegion records.

    Names are matched case-insensitively; adding a region under an existing
    name replaces it. Writes go to a temp file that is renamed into place,
    after copying the previous file to ``.bak``.
    """

    def __init__(self, storage_path: str):
        """
        Initialize region store.

        Args:
            storage_path: Path to JSON file
        """
        self.storage_path = Path(storage_path).expanduser()
        self._lock = Lock()
        self._regions: List[CaptureRegion] = []

    def exists(self) -> bool:
        """Check if the store file exists."""
        return self.storage_path.exists()

    def __len__(self) -> int:
        with self._lock:
            return len(self._regions)

    def list_regions(self) -> List[CaptureRegion]:
        """All regions in insertion order."""
        with self._lock:
            return list(self._regions)

    def get(self, name: str) -> Optional[CaptureRegion]:
        """Look up a region by name (case-insensitive)."""
        with self._lock:
            return self._find(name)

    def get_by_index(self, index: int) -> CaptureRegion:
        """
        Region at a 1-based menu position.

        Raises:
            IndexError: if the position is out of range
        """
        with self._lock:
            if index < 1 or index > len(self._regions):
                raise IndexError(f"Region selection {index} out of range 1-{len(self._regions)}")
            return self._regions[index - 1]

    def _find(self, name: str) -> Optional[CaptureRegion]:
        key = name.lower()
        for region in self._regions:
            if region.name.lower() == key:
                return region
        return None

    def add(self, region: CaptureRegion) -> CaptureRegion:
        """
        Add a named region, replacing any region with the same name.

        Raises:
            ValueError: if the region has no name
        """
        if not region.name.strip():
            raise ValueError("Region name must not be empty")
        if region.created_at is None:
            region = region.renamed(region.name)

        with self._lock:
            key = region.name.lower()
            replaced = any(r.name.lower() == key for r in self._regions)
            self._regions = [r for r in self._regions if r.name.lower() != key]
            self._regions.append(region)

        if replaced:
            logger.info(f"Replaced region '{region.name}'")
        else:
            logger.info(f"Added region {region}")
        return region

    def remove(self, name: str) -> bool:
        """Remove a region by name. Returns True if something was removed."""
        with self._lock:
            before = len(self._regions)
            key = name.lower()
            self._regions = [r for r in self._regions if r.name.lower() != key]
            removed = len(self._regions) < before

        if removed:
            logger.info(f"Removed region '{name}'")
        else:
            logger.warning(f"No region named '{name}'")
        return removed

    def load(self) -> int:
        """
        Load regions from the JSON file.

        A missing file yields an empty store; an unreadable file is logged
        and also yields an empty store. Invalid entries are skipped.

        Returns:
            Number of regions loaded
        """
        with self._lock:
            self._regions = []
            if not self.storage_path.exists():
                logger.info(f"No saved regions at {self.storage_path} - will create on first save")
                return 0

            try:
                with open(self.storage_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to load region store: {e}")
                return 0

            entries = data.get('regions', []) if isinstance(data, dict) else data
            for entry in entries:
                try:
                    self._regions.append(CaptureRegion.from_dict(entry))
                except (KeyError, TypeError, ValueError, InvalidRegionError) as e:
                    logger.warning(f"Skipping invalid saved region {entry!r}: {e}")

            logger.info(f"Loaded {len(self._regions)} saved regions")
            return len(self._regions)

    def _serialize(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "last_updated": datetime.now().isoformat(timespec='seconds'),
            "regions": [region.to_dict() for region in self._regions],
        }

    def save(self) -> None:
        """
        Write all regions to disk with backup.

        Raises:
            OSError: if the file cannot be written
        """
        with self._lock:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)

            if self.storage_path.exists():
                backup_path = self.storage_path.with_suffix('.json.bak')
                shutil.copy2(self.storage_path, backup_path)

            temp_path = self.storage_path.with_suffix('.json.tmp')
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(self._serialize(), f, indent=2, ensure_ascii=False)

            temp_path.replace(self.storage_path)
            logger.info(f"Saved {len(self._regions)} regions to {self.storage_path}")
