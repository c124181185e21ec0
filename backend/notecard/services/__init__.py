# Services package init
"""
Notecard — Services Layer
===========================

What:  The collaborators the notes view is composed from, plus the view itself.

Service Inventory:
    - base.py:            DataService / StorageService interfaces, StorageBinding,
                          UploadTask and the media path convention
    - data_service.py:    SqlDataService, owner-scoped notes in SQLAlchemy
    - storage_service.py: LocalStorageService (aiofiles + signed tokens),
                          S3StorageService (boto3 presigned URLs)
    - file_service.py:    attachment validation and key derivation
    - notes_view.py:      NotesView, the per-user view/controller
"""
