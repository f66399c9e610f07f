"""Read-only selectors."""

from revenue_kernel.selectors.base import BaseSelector
from revenue_kernel.selectors.snapshot_selector import SnapshotSelector

__all__ = ["BaseSelector", "SnapshotSelector"]
