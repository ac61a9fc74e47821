"""Output layer: constructor descriptions for humans (Rich) and machines (JSON)."""
