"""BTC market-data relay: cached price, derivatives risk and cross-exchange premium."""

__version__ = "0.1.0"
