from tradesync.infra.venue_client import MarketDataSource, VenueClient

__all__ = [
    "MarketDataSource",
    "VenueClient",
]
