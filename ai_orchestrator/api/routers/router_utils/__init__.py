"""
Router utility functions.

Contains helpers shared by the job routers.
"""

from ai_orchestrator.api.routers.router_utils.error_mapping import to_http_exception

__all__ = ["to_http_exception"]
