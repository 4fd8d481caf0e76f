from bridge.tools.backend_query import BackendQueryComposer

__all__ = ["BackendQueryComposer"]
