"""
MvcMovie web application.

Startup builds layered configuration, registers services on an explicit
container, assembles the middleware pipeline and seeds movies and roles.
"""
__version__ = "0.1.0"
