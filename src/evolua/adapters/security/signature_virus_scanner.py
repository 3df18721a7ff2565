"""
Byte-signature content scanner.

Recognises the EICAR test file plus any configured signatures. It is a
stand-in for a real antivirus engine behind the same port.
"""

from datetime import datetime
from typing import Callable, Iterable, List, Union

from ...application.ports.services.virus_scanner import ScanVerdict, VirusScanner
from ...core.utils.datetime_utils import utc_now
from ...domain.enums.document import VirusScanResult

EICAR_SIGNATURE = b"X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"


class SignatureVirusScanner(VirusScanner):
    def __init__(
        self,
        signatures: Iterable[Union[str, bytes]] = (),
        clock: Callable[[], datetime] = utc_now,
    ):
        self._signatures: List[bytes] = [EICAR_SIGNATURE]
        for signature in signatures:
            raw = signature.encode("utf-8") if isinstance(signature, str) else bytes(signature)
            if raw:
                self._signatures.append(raw)
        self._clock = clock

    async def scan(self, content: bytes, file_name: str) -> ScanVerdict:
        for signature in self._signatures:
            if signature in content:
                name = "EICAR-Test-File" if signature == EICAR_SIGNATURE else signature[:16].decode("utf-8", "replace")
                return ScanVerdict(VirusScanResult.INFECTED, self._clock(), name)
        return ScanVerdict(VirusScanResult.CLEAN, self._clock())
