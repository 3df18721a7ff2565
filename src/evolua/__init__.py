"""
Evolua: patient management core for speech-therapy clinics.

Domain model, application services and a thin HTTP boundary for
patient records, medical records and clinical documents.
"""

__version__ = "0.1.0"
__author__ = "Evolua Team"
__description__ = "Patient management for speech-therapy clinics"
