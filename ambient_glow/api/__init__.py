from .routes import create_api_routes

__all__ = ["create_api_routes"]
