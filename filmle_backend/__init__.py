"""
Shared Filmle backend library code.

This package holds code reused by the FastAPI app in `api/`:
- Supabase helpers (`filmle_backend.db`)
- the TMDb movie client (`filmle_backend.integrations.tmdb`)
- the calendar lookup (`filmle_backend.repositories.calendar`)

App entrypoints (FastAPI routers) should live outside this package and import
from `filmle_backend` rather than the other way around.
"""
