# portfolio_core/utils/__init__.py
"""
Cross-cutting utilities:
- logging: Logging configuration for host programs
- date_utils: Transaction date parsing and snapshot date grids

Usage:
    from portfolio_core.utils import setup_logging
    from portfolio_core.utils.date_utils import generate_snapshot_dates
"""

from portfolio_core.utils.logging import setup_logging

__all__ = [
    "setup_logging",
]
