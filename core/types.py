"""Common type definitions for the tokenscope system."""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class SortField(str, Enum):
    """Fields usage records can be ordered by."""

    OCCURRED_AT = "occurredAt"
    MODEL = "model"
    ROUTE = "route"
    SOURCE = "source"
    TOTAL_TOKENS = "totalTokens"
    INPUT_TOKENS = "inputTokens"
    OUTPUT_TOKENS = "outputTokens"
    REASONING_TOKENS = "reasoningTokens"
    CACHED_TOKENS = "cachedTokens"
    COST = "cost"
    IS_ERROR = "isError"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"
