# Routes package init
"""
MangaPlus Backend — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - health.py:  GET  /ping                                   (liveness)
    - manga.py:   GET  /manga/{slug}/volumes/{v}/chapters/{c}  (fetch chapter)
    - upload.py:  POST /upload                                 (upload images + create chapter)

Routes are thin: they pull data out of the request, get the shared clients
through Depends(), call ChapterService and return the response model.
"""
