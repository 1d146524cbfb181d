from .bootstrap import bootstrap
from .container import Container, Scope
from .lifetime import Lifetime

__all__ = ["Container", "Lifetime", "Scope", "bootstrap"]
