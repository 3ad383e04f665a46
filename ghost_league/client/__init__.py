"""Python client for the Ghost League accounts API."""
from ghost_league.client.http import ApiClient
from ghost_league.client.session import SessionManager
from ghost_league.client.state import AuthState, reduce
from ghost_league.client.status_gate import GateDecision, StatusGate
from ghost_league.client.storage import FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    "ApiClient",
    "AuthState",
    "FileTokenStore",
    "GateDecision",
    "MemoryTokenStore",
    "SessionManager",
    "StatusGate",
    "TokenStore",
    "reduce",
]
