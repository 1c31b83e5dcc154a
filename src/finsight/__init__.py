"""FinSight: upload bank statements and review their financial analysis."""

__version__ = "0.1.0"
