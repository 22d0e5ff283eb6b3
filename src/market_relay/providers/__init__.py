from .exchanges import BinanceFetcher, CoinbaseFetcher, ExchangeEndpoints, JsonClient, UpbitFetcher
from .fx import FxRateChain, extract_rate
from .http import UpstreamClient, UpstreamClientConfig

__all__ = [
    "BinanceFetcher",
    "CoinbaseFetcher",
    "ExchangeEndpoints",
    "JsonClient",
    "UpbitFetcher",
    "FxRateChain",
    "extract_rate",
    "UpstreamClient",
    "UpstreamClientConfig",
]
