"""
Scalus OAuth2 login strategy: organization site validation, signed callbacks, code exchange.
"""
from scalus_auth.config import StrategyConfig
from scalus_auth.strategy import AuthFailure, AuthorizeRedirect, AuthResult, Credentials, ScalusStrategy

__all__ = [
    "AuthFailure",
    "AuthResult",
    "AuthorizeRedirect",
    "Credentials",
    "ScalusStrategy",
    "StrategyConfig",
]
