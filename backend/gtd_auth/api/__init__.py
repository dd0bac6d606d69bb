"""
HTTP layer: routers, request models and authentication dependencies.
"""
