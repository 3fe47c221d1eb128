"""PA Sandbox - a prior-authorization request API for integration testing."""

__version__ = "0.1.0"
