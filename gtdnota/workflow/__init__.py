"""
Workflow engine: capture, modify, status transitions and trash purge.

Recurring notas spawn their next occurrence when they move to done.
"""
