# Routes package init
"""
Notecard — Routes Package
===========================

What:  HTTP route handlers. Thin: they read the request, drive a NotesView or
       a service, and shape the response.

Route Inventory:
    - pages.py:   GET /, POST /notes, POST /notes/{id}/delete   (HTML + forms)
    - auth.py:    POST /auth/session, POST /auth/sign-out, GET /api/session
    - notes.py:   GET/POST /api/notes, DELETE /api/notes/{id}   (JSON)
    - media.py:   GET /storage/{key}?token=...                   (signed files)
    - health.py:  GET /health
    - deps.py:    per-request NotesView construction
    - forms.py:   multipart upload → Attachment
"""
