"""Personal ledger service: running balances, shared links and payment claims."""

from .main import create_application

__all__ = ["create_application"]
