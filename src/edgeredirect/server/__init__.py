"""HTTP server."""

from edgeredirect.server.app import RedirectServer, request_info_from_aiohttp

__all__ = ["RedirectServer", "request_info_from_aiohttp"]
