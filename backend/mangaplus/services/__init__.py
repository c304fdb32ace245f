# Services package init
"""
MangaPlus Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the external collaborators.

Service Inventory:
    - ImageKitService: client for the ImageKit upload API
    - upload_file: single-file adapter (read → base64 → upload)
    - ChapterService: chapter lookup and the upload → insert workflow

Shared clients are passed in by the caller on every call; no service
reaches for a module-level client.
"""
