"""imagebuilder - Docker image builds with isolated registry logins."""

from __future__ import annotations

__version__ = "1.0.0"
