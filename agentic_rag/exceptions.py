"""Exceptions raised by the agentic search engine."""


class AgenticSearchError(Exception):
    """Base exception for agentic search errors."""

    pass


class ConfigurationError(AgenticSearchError):
    """Raised when no completion provider can be resolved for a request."""

    pass


class SourceRetrievalError(AgenticSearchError):
    """Raised when a vector or web search call fails or times out."""

    pass


class PlanningError(AgenticSearchError):
    """Raised when sub-query decomposition or refinement fails."""

    pass


class SynthesisError(AgenticSearchError):
    """Raised when the final answer cannot be synthesized."""

    pass


class SearchCancelledError(AgenticSearchError):
    """Raised when a search deadline expires between rounds."""

    pass
