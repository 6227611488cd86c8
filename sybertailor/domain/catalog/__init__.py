from .router import fabrics_router, styles_router

__all__ = ["fabrics_router", "styles_router"]
