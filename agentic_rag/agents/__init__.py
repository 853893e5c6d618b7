# =============================================================================
# Agents Package - Agentic Search Loop
# =============================================================================
# Implements the multi-round search as a LangGraph state machine:
#   - orchestrator.py: graph definition, run_agentic_search() entry point
#   - planner.py: decompose the query, refine after each round
#   - query_parser.py: turn LLM list output into clean sub-queries
#   - retriever.py: concurrent document + web retrieval per sub-query
#   - dedup.py: cross-round source deduplication
#   - summarizer.py: per-round digest (best-effort)
#   - synthesizer.py: final cited answer
#
# Search loop: plan → retrieve → dedupe → summarize → check (max N rounds)
# =============================================================================
