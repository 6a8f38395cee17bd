"""Work tracker provider adapters."""

from .base import GraphQLProviderAdapter, HttpProviderAdapter, ProviderAdapter
from .clickup import ClickUpAdapter
from .exceptions import ProviderError, ProviderNotConfiguredError
from .github import GitHubAdapter
from .linear import LinearAdapter
from .monday import MondayAdapter
from .notion import NotionAdapter
from .registry import AdapterMap, close_adapters, default_adapters
from .trello import TrelloAdapter

__all__ = [
    # Contract
    "GraphQLProviderAdapter",
    "HttpProviderAdapter",
    "ProviderAdapter",
    # Adapters
    "ClickUpAdapter",
    "GitHubAdapter",
    "LinearAdapter",
    "MondayAdapter",
    "NotionAdapter",
    "TrelloAdapter",
    # Registry
    "AdapterMap",
    "close_adapters",
    "default_adapters",
    # Exceptions
    "ProviderError",
    "ProviderNotConfiguredError",
]
