"""Points ledger and reward redemption API for parents and kids."""

__version__ = "0.1.0"
