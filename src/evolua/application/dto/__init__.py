"""Data transfer objects exchanged with application services."""
