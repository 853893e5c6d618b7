# =============================================================================
# API Package - FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter:
#   - search.py: Agentic search endpoint and status probe
#   - health.py: Liveness probe
#   - deps.py: Shared dependencies (Bearer auth, service lookup)
# =============================================================================
