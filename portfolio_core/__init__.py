# portfolio_core/__init__.py
"""
Multi-currency portfolio valuation and performance engine.

Positions are bought in any supported currency and reported in a single
reporting currency (JPY by default).
"""

__version__ = "0.1.0"
