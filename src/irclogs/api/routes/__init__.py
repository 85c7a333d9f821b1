"""Route modules for the IRC log service API."""

from __future__ import annotations

from . import ask, health, logs

__all__ = ["ask", "health", "logs"]
