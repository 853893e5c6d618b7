# =============================================================================
# Agentic RAG Search
# =============================================================================
# An iterative retrieval-and-synthesis engine. A question is decomposed into
# sub-queries, each round searches documents (and optionally the web), the
# gathered evidence is judged for sufficiency, and a cited answer is
# synthesized once the evidence suffices or the round budget runs out.
#
# Package structure:
#   agentic_rag/
#   ├── api/          → FastAPI route handlers (agentic search, health)
#   ├── agents/       → LangGraph search loop (plan → retrieve → dedupe →
#   │                    summarize → continue-check → synthesize)
#   ├── models/       → Pydantic V2 request/response schemas
#   └── services/     → Providers and collaborators (LLM, embeddings,
#                        vector store, web search, rendering, auth)
# =============================================================================
