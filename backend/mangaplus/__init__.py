"""
MangaPlus Backend — Application Package
=========================================

Layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← upload → insert workflow
    ├─────────────────────────────────────┤
    │             Schemas (Data)          │  ← Pydantic models
    ├─────────────────────────────────────┤
    │    Database / ImageKit (Clients)    │  ← shared process-wide clients
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
