"""
Virus scanner interface used at upload time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ....domain.enums.document import VirusScanResult


@dataclass(frozen=True)
class ScanVerdict:
    result: VirusScanResult
    scanned_at: datetime
    signature: str = ""


class VirusScanner(ABC):
    """Abstract interface for content scanning."""

    @abstractmethod
    async def scan(self, content: bytes, file_name: str) -> ScanVerdict:
        """Scan ``content`` and return the verdict with its timestamp."""
        pass
