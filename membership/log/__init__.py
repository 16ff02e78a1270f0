from .log import InterceptHandler, setup_logging

__all__ = ["InterceptHandler", "setup_logging"]
