"""HTTP routers."""

from . import handoff

__all__ = ["handoff"]
