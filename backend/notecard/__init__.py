"""
Notecard — Application Package Initializer
===========================================

What: Marks the `notecard` directory as a Python package.
Who:  Imported by uvicorn (`notecard.main:app`), Alembic and pytest.

Architecture Note:
    The application is one view/controller talking to three collaborators:

    ┌──────────────────────────────────────────────┐
    │   Routes (pages + JSON API)                  │  ← HTTP concerns only
    ├──────────────────────────────────────────────┤
    │   NotesView (view/controller state)          │  ← fetch / create / delete
    ├──────────────┬───────────────┬───────────────┤
    │ DataService  │ StorageService│  AuthGate     │  ← pluggable collaborators
    ├──────────────┼───────────────┼───────────────┤
    │ SQLAlchemy   │ disk / S3     │  JWT sessions │
    └──────────────┴───────────────┴───────────────┘

    Each collaborator sits behind an interface so the view can run against any
    compatible backend.
"""

__version__ = "1.0.0"
