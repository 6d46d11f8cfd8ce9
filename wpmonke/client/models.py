"""Typed views of the WordPress REST payloads wpmonke works with."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

REST_BASES = {"post": "posts", "page": "pages"}


def rest_base(content_type: str) -> str:
    """Collection path segment for a content type."""
    return REST_BASES.get(content_type, content_type)


def _rendered(value: Any) -> str:
    """Pick ``raw`` (edit context) over ``rendered`` for title/content/excerpt fields."""
    if isinstance(value, dict):
        raw = value.get("raw")
        return raw if raw is not None else value.get("rendered", "")
    return value or ""


class Credentials(BaseModel):
    """Username and secret used for HTTP Basic auth."""

    username: str
    secret: str

    def as_auth(self) -> tuple:
        return (self.username, self.secret)


class Principal(BaseModel):
    """A WordPress user."""

    id: int
    username: str = ""
    email: str = ""
    name: str = ""
    slug: str = ""
    roles: List[str] = Field(default_factory=list)
    capabilities: Dict[str, bool] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Principal":
        return cls(
            id=int(data["id"]),
            username=data.get("username") or "",
            email=data.get("email") or "",
            name=data.get("name") or "",
            slug=data.get("slug") or "",
            roles=list(data.get("roles") or []),
            capabilities={k: bool(v) for k, v in (data.get("capabilities") or {}).items()},
        )

    def can(self, capability: str) -> bool:
        return self.capabilities.get(capability, False)


class ContentItem(BaseModel):
    """A post, page or other content record."""

    id: int
    type: str = "post"
    status: str = ""
    author: Optional[int] = None
    title: str = ""
    content: str = ""
    excerpt: str = ""
    rendered_title: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ContentItem":
        title = data.get("title")
        return cls(
            id=int(data["id"]),
            type=data.get("type") or "post",
            status=data.get("status") or "",
            author=data.get("author"),
            title=_rendered(title),
            content=_rendered(data.get("content")),
            excerpt=_rendered(data.get("excerpt")),
            rendered_title=title.get("rendered", "") if isinstance(title, dict) else (title or ""),
        )


class ContentFields(BaseModel):
    """Writable fields for create/update calls. ``None`` means "leave unset"."""

    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[str] = None
    author: Optional[int] = None
    excerpt: Optional[str] = None
    type: str = "post"

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"type"})


class ContentQuery(BaseModel):
    """Filter for listing content."""

    type: str = "post"
    status: Optional[str] = None
    author: Optional[int] = None
    page_size: int = Field(10, ge=1, le=100)
    page: int = Field(1, ge=1)
    search: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "context": "edit",
            "per_page": self.page_size,
            "page": self.page,
        }
        if self.status:
            params["status"] = self.status
        if self.author is not None:
            params["author"] = self.author
        if self.search:
            params["search"] = self.search
        return params


class ContentPage(BaseModel):
    """One page of a content query."""

    matched_count: int
    total_pages: int = 1
    items: List[ContentItem] = Field(default_factory=list)

    @property
    def ids(self) -> List[int]:
        return [item.id for item in self.items]


class DispatchResponse(BaseModel):
    """Raw outcome of a REST request."""

    status_code: int
    body: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def error_code(self) -> Optional[str]:
        if isinstance(self.body, dict):
            return self.body.get("code")
        return None
