"""Infrastructure layer — wiring manifest, mutation sink, graph engine.

This layer depends on stdlib, third-party libs (ruamel.yaml, pydantic),
and the domain layer. It must never import from services, commands, or
output. The service layer drives the pipeline over these collaborators.
"""
