# =============================================================================
# Models Package - Pydantic V2 Schemas
# =============================================================================
# Defines request/response schemas for the API.
# These are SEPARATE from the engine's dataclasses (agents/orchestrator.py).
# Route handlers map between the two, so the wire format (camelCase JSON)
# can change without touching the search loop.
# =============================================================================
