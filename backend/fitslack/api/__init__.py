"""HTTP layer: routers, dependencies and HTML pages."""
