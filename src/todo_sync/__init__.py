"""
todo-sync: client-side sync layer for a to-do list backed by an unreliable task service.

Subpackages:
- tasks/: models, errors, filtering, the mock service and the sync engine
- core/: ports (Protocols) and the application state container
- cli/, connectors/: console front-end driving the engine
"""

__version__ = "0.1.0"
