"""
Cross-cutting pieces: security, permissions, logging, push delivery and the
live WebSocket channel. Import the submodules directly.
"""
