"""Event aggregation"""

from .aggregator import EventAggregator

__all__ = ["EventAggregator"]
