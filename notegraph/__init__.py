"""
NoteGraph Application Modules.

- backend/: API, services, repositories, database models and configuration
"""
