"""Internal helpers for txcontext. Not part of the public API."""
