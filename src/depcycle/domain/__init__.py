"""Domain layer — graph model, cycle algorithms, and classification enums.

This layer depends only on stdlib, NetworkX, and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
