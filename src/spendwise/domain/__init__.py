"""Domain layer: error taxonomy, value objects, repository protocols."""
