"""Output layer — Rich tables for humans, JSON for machines."""
