"""Authentication strategies."""

from quill_auth.strategies.bearer import BearerStrategy
from quill_auth.strategies.identity import IdentityStrategy

__all__ = ["BearerStrategy", "IdentityStrategy"]
