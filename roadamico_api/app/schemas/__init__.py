"""
Pydantic schema definitions for API payloads.

Schemas are separated from storage so the API representation can
differ from the table layout (camelCase names, populated references).
"""
