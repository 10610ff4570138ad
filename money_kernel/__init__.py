"""
Money Kernel

Exact, currency-aware monetary arithmetic:
- Decimal-only Money values pinned to a Currency
- Symmetric exchange-rate table with currency-independent comparison,
  arithmetic and clamping
- Typed exceptions and structured JSON logging shared with the tax engines
"""

__version__ = "0.1.0"
