"""pytest-txcontext - run tests with context propagation across Twisted Deferreds."""

__version__ = "0.1.0"
