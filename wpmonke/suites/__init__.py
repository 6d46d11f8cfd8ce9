"""Suites - WordPress contract scenarios run inside fixture sessions."""

# Re-export suite classes for convenience
from .authentication import AuthenticationSuite  # noqa: F401
from .database import DatabaseSuite  # noqa: F401
from .posts import PostSuite  # noqa: F401
from .rest_api import RestApiSuite  # noqa: F401
from .users import UserSuite  # noqa: F401

# Registry
from .registry import SuiteRegistry  # noqa: F401
