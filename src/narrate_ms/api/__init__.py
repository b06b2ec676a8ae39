"""
FastAPI REST API Layer for narrate-ms.

    - routes.py: /narrate (GET, POST, OPTIONS), /health, /metrics
    - schemas.py: Request/response Pydantic models
    - cors.py: CORS header construction
    - dependencies.py: FastAPI dependency injection
"""
