"""Transports that carry frames between the pool and document sessions.

Any object with a non-blocking ``send(text)`` and an ``is_open`` property
satisfies the pool's Transport protocol.
"""

from .websocket import WebSocketDocumentTransport

__all__ = ["WebSocketDocumentTransport"]
