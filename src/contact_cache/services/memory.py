"""Process memory probes."""

from dataclasses import dataclass, field
from typing import Protocol

import psutil

from contact_cache.domain.cache import MemoryUsage

_MB = 1024 * 1024


class MemoryProbe(Protocol):
    """Interface for reading host process memory."""

    def snapshot(self) -> MemoryUsage:
        """Return current process memory figures."""


@dataclass
class PsutilMemoryProbe(MemoryProbe):
    """Memory probe backed by psutil for the current process."""

    process: psutil.Process = field(default_factory=psutil.Process)

    def snapshot(self) -> MemoryUsage:
        """Read resident and virtual memory of the process."""
        info = self.process.memory_info()
        return MemoryUsage(
            rss_mb=info.rss / _MB,
            vms_mb=info.vms / _MB,
            percent=self.process.memory_percent(),
        )
