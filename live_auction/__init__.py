"""Live auction engine: lots, budget-capped bids and real-time broadcast."""

__version__ = "0.1.0"
