"""Domain layer — entities, enums, and local invariants.

This layer depends only on stdlib.
It must never import from services, infrastructure, commands, or config.
"""
