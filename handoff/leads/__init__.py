"""Customer leads aggregated across channels."""

from .repository import LeadRepository
from .schemas import Lead
from .service import LeadAggregator

__all__ = ["Lead", "LeadAggregator", "LeadRepository"]
