"""
Route handlers.

    basic.py    /, /echo/{text}, /user-agent
    files.py    /files/{name} (GET and POST), sandboxed to --directory
"""

from .basic import echo, root, user_agent
from .files import FileHandler


__all__ = ["root", "echo", "user_agent", "FileHandler"]
