"""
API routers, mounted by xswap.server.
"""
