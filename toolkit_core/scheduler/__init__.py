"""Main-loop scheduling."""

from .main_loop import MainLoopDispatchQueue

__all__ = ["MainLoopDispatchQueue"]
