"""Infrastructure layer — keyed storage, the registry context, script I/O.

The registry is the single dependency injected into every service.
Infrastructure may import the domain model; it must never import from
services, commands, or output.
"""
