"""Application services orchestrating domain objects and ports."""
