"""Authorization, user directory and content scanning adapters."""

from .clinic_authorization import ApiKeyUserDirectory, ClinicAuthorizationService
from .signature_virus_scanner import EICAR_SIGNATURE, SignatureVirusScanner

__all__ = [
    "ApiKeyUserDirectory",
    "ClinicAuthorizationService",
    "EICAR_SIGNATURE",
    "SignatureVirusScanner",
]
