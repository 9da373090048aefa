from tgsearch.orchestrators.search.backends.telegram import TelethonPlatform

__all__ = [
    "TelethonPlatform",
]
