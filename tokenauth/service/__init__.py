"""Use-case layer: token and CSRF services built on the pure domain modules."""
__all__ = ["csrf_service", "token_service"]
