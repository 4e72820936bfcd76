"""GUI-agnostic core of the edit engine: models, traversal, rules and services."""
