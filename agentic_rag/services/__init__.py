# =============================================================================
# Services Package - Providers & Collaborators
# =============================================================================
# Everything the search loop talks to, behind small interfaces:
#   - llm.py: Multi-provider LLM abstraction (Anthropic, OpenAI-compatible,
#     Ollama, externally bound models) + ProviderRegistry
#   - embedder.py: OpenAI embedding generation
#   - vectorstore.py: DocumentSearch protocol + ChromaDB implementation
#   - web_search.py: WebSearch protocol + DuckDuckGo/Tavily/Brave client
#   - rendering.py: Markdown → HTML for answers
#   - auth.py: API key generation and hashing
#   - search_service.py: AgenticSearchService, the engine's entry point
# =============================================================================
