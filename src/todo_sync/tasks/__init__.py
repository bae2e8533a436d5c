"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskPatch, ActiveOperation, SyncSnapshot, ...)
- errors.py: backend and local error taxonomy
- task_filters.py: ordering, filtering and counts
- task_backend.py: in-memory task service with simulated latency and failures
- sync_engine.py: client-side collection owner and operation tracker
"""
