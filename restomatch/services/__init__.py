"""
                        Services Module

Business logic that spans more than one table.

Services:
    - stats: Windowed aggregate reporting
"""

from restomatch.services.stats import Window, compute_stats, percentage_change

__all__ = ["Window", "compute_stats", "percentage_change"]
