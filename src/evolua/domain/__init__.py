"""Domain layer: value objects, aggregates and business errors."""
