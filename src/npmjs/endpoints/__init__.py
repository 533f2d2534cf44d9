"""Public endpoint facades composed by ``npmjs.registry.client.Registry``."""

from .downloads import Downloads
from .packages import Packages, encode_name
from .users import Users

__all__ = [
    "Downloads",
    "Packages",
    "Users",
    "encode_name",
]
