"""WordPress REST client and payload models."""

from .models import (  # noqa: F401
    ContentFields,
    ContentItem,
    ContentPage,
    ContentQuery,
    Credentials,
    DispatchResponse,
    Principal,
)
from .wordpress import WordPressClient  # noqa: F401
