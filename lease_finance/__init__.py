"""
Lease Finance Calculator

Loan amortization, investor allocation, investment metrics and leasing
financials for structured asset financing.
"""

__version__ = "0.1.0"
