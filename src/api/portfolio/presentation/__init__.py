"""HTTP presentation for portfolio records."""

from portfolio.presentation.routes import router

__all__ = ["router"]
