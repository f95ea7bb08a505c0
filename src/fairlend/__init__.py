"""fairlend — routing, ledger and payment-sync toolkit for the mortgage marketplace."""

__version__ = "0.4.0"
