from .config import Config
from .server import Server

__all__ = ["Config", "Server"]
