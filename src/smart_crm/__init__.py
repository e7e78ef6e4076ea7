"""
Smart CRM

Contact management with multiple views, product-to-contact matching,
outreach draft generation and AI sales intelligence over a hosted
Postgres backend.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .services import (
    ContactRepository,
    DraftService,
    MatchService,
    ProductMatcher,
    ProductService,
    ViewPreferencesService,
)
from .store import ContactStore, TourStore, ViewState
from .intelligence import SalesIntelligenceService
from .result import Result, capture
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    OperationTimer,
)
from .errors import (
    SmartCRMError,
    ClientError,
    BackendError,
    FunctionError,
    OpenAIError,
    ValidationError,
    ContactValidationError,
    ContactNotFoundError,
    PayloadError,
    ExportError,
    PartialSuccessResult,
)

__all__ = [
    # Version
    '__version__',
    # Services
    'ContactRepository',
    'DraftService',
    'MatchService',
    'ProductMatcher',
    'ProductService',
    'ViewPreferencesService',
    'SalesIntelligenceService',
    # Stores
    'ContactStore',
    'TourStore',
    'ViewState',
    # Results
    'Result',
    'capture',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'OperationTimer',
    # Errors
    'SmartCRMError',
    'ClientError',
    'BackendError',
    'FunctionError',
    'OpenAIError',
    'ValidationError',
    'ContactValidationError',
    'ContactNotFoundError',
    'PayloadError',
    'ExportError',
    'PartialSuccessResult',
]
