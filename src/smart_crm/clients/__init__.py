"""
External service clients for Smart CRM.
"""

from .backend_client import BackendClient, Filter, QueryResult
from .functions_client import FunctionsClient
from .openai_client import OpenAIClient

__all__ = [
    'BackendClient',
    'Filter',
    'QueryResult',
    'FunctionsClient',
    'OpenAIClient',
]
