from .session import create_engine, create_session_factory, get_async_url, init_db

__all__ = ["create_engine", "create_session_factory", "get_async_url", "init_db"]
