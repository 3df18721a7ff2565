"""MongoDB (beanie/motor) persistence adapters."""
