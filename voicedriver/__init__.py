"""Voice connection driver parts: packet crypto, retry strategies, connection helpers, events and errors."""

__version__ = "0.1.0"

__all__ = ["connection", "context", "crypto", "errors", "events", "retry", "store"]