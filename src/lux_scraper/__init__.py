from .daemon import ContinuousDaemon
from .runner import BatchRunner, RunReport
from .sources.registry import get_source, list_sources

__all__ = ["BatchRunner", "ContinuousDaemon", "RunReport", "get_source", "list_sources"]
