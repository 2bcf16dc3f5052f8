from .clients import AuthClient, StockClient
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    AuthError,
    NotFoundError,
    ServerError,
    TransportError,
    UnexpectedResponseError,
    ValidationError,
)
from .http_client import HttpClient
from .models import AuthResponse, Medicine, MedicineFields, Stock, StockPage, User
from .session import AuthSession
from .token_store import TOKEN_KEY, TokenStore
from .ui_errors import UserFacingError, to_user_facing_error
from .validation import (
    ClientValidationError,
    ValidationIssue,
    validate_medicine_form,
    validate_stock_name,
)

__version__ = "0.3.0"

__all__ = [
    "ApiError",
    "AuthClient",
    "AuthError",
    "AuthResponse",
    "AuthSession",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "HttpClient",
    "Medicine",
    "MedicineFields",
    "NotFoundError",
    "ServerError",
    "Stock",
    "StockClient",
    "StockPage",
    "TOKEN_KEY",
    "TokenStore",
    "TransportError",
    "UnexpectedResponseError",
    "User",
    "UserFacingError",
    "ValidationError",
    "ValidationIssue",
    "load_config",
    "to_user_facing_error",
    "validate_medicine_form",
    "validate_stock_name",
]
