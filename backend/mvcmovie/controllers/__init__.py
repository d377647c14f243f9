"""
Controllers reachable through the default route {controller=Home}/{action=Index}/{id?}.
"""
from .account import AccountController
from .base import Controller, action
from .home import HomeController
from .movies import MoviesController

CONTROLLERS = (HomeController, AccountController, MoviesController)

__all__ = [
    "AccountController",
    "CONTROLLERS",
    "Controller",
    "HomeController",
    "MoviesController",
    "action",
]
