"""WordPress REST API client for wpmonke.

Every public coroutine returns a ``Result``. HTTP error bodies and transport
failures become ``Err`` values; nothing here raises for a failed call.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

import httpx

from wpmonke.client.models import (
    ContentFields,
    ContentItem,
    ContentPage,
    ContentQuery,
    Credentials,
    DispatchResponse,
    Principal,
    rest_base,
)
from wpmonke.core.config import HarnessConfig
from wpmonke.core.results import Err, ErrorKind, Ok, Result, WordPressError
from wpmonke.utils.logging import get_logger

API_NAMESPACE = "/wp/v2"

# Sentinel: authenticate as the configured administrator
_ADMIN = object()

PRINCIPAL_KEY_KINDS = ("id", "login", "email", "slug")


class WordPressClient:
    """Client for the content and identity endpoints of a WordPress site."""

    def __init__(
        self,
        rest_url: str,
        admin: Credentials,
        timeout: float = 30.0,
        verify: bool = True,
        reassign_principal_id: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the WordPress client.

        Args:
            rest_url: REST root, e.g. ``http://localhost:8080/wp-json``
            admin: Administrator credentials used for fixture management
            timeout: Per-request timeout in seconds
            verify: Verify TLS certificates
            reassign_principal_id: User inheriting content of deleted users
            transport: Optional transport override (tests use ``httpx.MockTransport``)
        """
        self.rest_url = rest_url.rstrip("/")
        self.admin = admin
        self.reassign_principal_id = reassign_principal_id
        self.logger = get_logger("wordpress_client")
        self._http = httpx.AsyncClient(
            base_url=self.rest_url,
            timeout=timeout,
            verify=verify,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_config(
        cls, config: HarnessConfig, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "WordPressClient":
        username, secret = config.resolve_admin_credentials()
        return cls(
            rest_url=config.site.rest_url,
            admin=Credentials(username=username, secret=secret),
            timeout=config.site.timeout_seconds,
            verify=config.site.verify_tls,
            reassign_principal_id=config.capabilities.reassign_principal_id,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "WordPressClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def _auth(self, auth: Any) -> Optional[Tuple[str, str]]:
        if auth is _ADMIN:
            return self.admin.as_auth()
        if isinstance(auth, Credentials):
            return auth.as_auth()
        return auth

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        auth: Any = _ADMIN,
    ) -> Result[httpx.Response]:
        """Send a request; only transport failures become ``Err`` here."""
        self.logger.debug(f"🌐 {method} {path}")
        try:
            response = await self._http.request(
                method, path, params=params, json=json, auth=self._auth(auth)
            )
        except httpx.HTTPError as e:
            self.logger.error(f"❌ {method} {path} failed: {e}")
            return Err(WordPressError.transport(e))
        self.logger.debug(f"📥 {method} {path} -> {response.status_code}")
        return Ok(response)

    async def _call(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        auth: Any = _ADMIN,
    ) -> Result[Any]:
        """Send a request and fold non-2xx responses into ``Err``."""
        sent = await self._send(method, path, params=params, json=json, auth=auth)
        if not sent.ok:
            return sent
        response = sent.value
        body = _decode(response)
        if response.status_code >= 400:
            return Err(WordPressError.from_body(response.status_code, body))
        return Ok(body)

    # ------------------------------------------------------------------ #
    # Principals
    # ------------------------------------------------------------------ #

    async def create_principal(
        self,
        username: str,
        secret: str,
        email: str,
        roles: Optional[Iterable[str]] = None,
    ) -> Result[int]:
        """Create a user and return its id."""
        payload: Dict[str, Any] = {"username": username, "password": secret, "email": email}
        if roles:
            payload["roles"] = list(roles)
        result = await self._call("POST", f"{API_NAMESPACE}/users", json=payload)
        if not result.ok:
            return result
        return Ok(int(result.value["id"]))

    async def set_principal_roles(
        self, principal_id: int, roles: Iterable[str]
    ) -> Result[Principal]:
        result = await self._call(
            "POST",
            f"{API_NAMESPACE}/users/{principal_id}",
            params={"context": "edit"},
            json={"roles": list(roles)},
        )
        if not result.ok:
            return result
        return Ok(Principal.from_api(result.value))

    async def issue_application_password(self, principal_id: int, name: str) -> Result[str]:
        """Mint an application password usable for HTTP Basic auth."""
        result = await self._call(
            "POST",
            f"{API_NAMESPACE}/users/{principal_id}/application-passwords",
            json={"name": name},
        )
        if not result.ok:
            return result
        return Ok(str(result.value["password"]))

    async def delete_principal(self, principal_id: int) -> Result[Optional[Principal]]:
        """Permanently delete a user. A missing user is ``Ok(None)``."""
        reassign = "" if self.reassign_principal_id is None else self.reassign_principal_id
        result = await self._call(
            "DELETE",
            f"{API_NAMESPACE}/users/{principal_id}",
            params={"force": "true", "reassign": reassign},
        )
        if not result.ok:
            if result.error.kind == ErrorKind.NOT_FOUND:
                return Ok(None)
            return result
        previous = result.value.get("previous") if isinstance(result.value, dict) else None
        return Ok(Principal.from_api(previous) if previous else None)

    async def lookup_principal(self, key_kind: str, key_value: Any) -> Result[Optional[Principal]]:
        """Find a user by ``id``, ``login``, ``email`` or ``slug``."""
        if key_kind not in PRINCIPAL_KEY_KINDS:
            raise ValueError(f"key_kind must be one of {PRINCIPAL_KEY_KINDS}, got: {key_kind}")

        if key_kind == "id":
            result = await self._call(
                "GET", f"{API_NAMESPACE}/users/{key_value}", params={"context": "edit"}
            )
            if not result.ok:
                if result.error.kind == ErrorKind.NOT_FOUND:
                    return Ok(None)
                return result
            return Ok(Principal.from_api(result.value))

        params: Dict[str, Any] = {"context": "edit", "per_page": 100}
        if key_kind == "slug":
            params["slug"] = key_value
        else:
            params["search"] = key_value
        result = await self._call("GET", f"{API_NAMESPACE}/users", params=params)
        if not result.ok:
            return result

        field = {"login": "username", "email": "email", "slug": "slug"}[key_kind]
        for data in result.value or []:
            principal = Principal.from_api(data)
            if str(getattr(principal, field)).lower() == str(key_value).lower():
                return Ok(principal)
        return Ok(None)

    async def authenticate(self, username: str, secret: str) -> Result[Principal]:
        """Check a username/secret pair by asking the site who we are."""
        result = await self._call(
            "GET",
            f"{API_NAMESPACE}/users/me",
            params={"context": "edit"},
            auth=(username, secret),
        )
        if not result.ok:
            return result
        return Ok(Principal.from_api(result.value))

    # ------------------------------------------------------------------ #
    # Content
    # ------------------------------------------------------------------ #

    async def create_content(self, fields: ContentFields) -> Result[int]:
        result = await self._call(
            "POST", f"{API_NAMESPACE}/{rest_base(fields.type)}", json=fields.to_payload()
        )
        if not result.ok:
            return result
        return Ok(int(result.value["id"]))

    async def update_content(self, content_id: int, fields: ContentFields) -> Result[int]:
        result = await self._call(
            "POST",
            f"{API_NAMESPACE}/{rest_base(fields.type)}/{content_id}",
            json=fields.to_payload(),
        )
        if not result.ok:
            return result
        return Ok(int(result.value["id"]))

    async def delete_content(
        self, content_id: int, permanent: bool, content_type: str = "post"
    ) -> Result[Optional[ContentItem]]:
        """Trash or permanently delete content. A missing item is ``Ok(None)``."""
        result = await self._call(
            "DELETE",
            f"{API_NAMESPACE}/{rest_base(content_type)}/{content_id}",
            params={"force": "true" if permanent else "false"},
        )
        if not result.ok:
            if result.error.kind == ErrorKind.NOT_FOUND:
                return Ok(None)
            return result
        body = result.value
        # Forced deletes answer {"deleted": true, "previous": {...}}
        if isinstance(body, dict) and "previous" in body:
            body = body["previous"]
        return Ok(ContentItem.from_api(body))

    async def lookup_content(
        self, content_id: int, content_type: str = "post"
    ) -> Result[Optional[ContentItem]]:
        result = await self._call(
            "GET",
            f"{API_NAMESPACE}/{rest_base(content_type)}/{content_id}",
            params={"context": "edit"},
        )
        if not result.ok:
            if result.error.kind == ErrorKind.NOT_FOUND:
                return Ok(None)
            return result
        return Ok(ContentItem.from_api(result.value))

    async def query_content(self, query: ContentQuery) -> Result[ContentPage]:
        sent = await self._send(
            "GET", f"{API_NAMESPACE}/{rest_base(query.type)}", params=query.to_params()
        )
        if not sent.ok:
            return sent
        response = sent.value
        body = _decode(response)
        if response.status_code >= 400:
            return Err(WordPressError.from_body(response.status_code, body))
        items = [ContentItem.from_api(data) for data in body or []]
        return Ok(
            ContentPage(
                matched_count=int(response.headers.get("X-WP-Total", len(items))),
                total_pages=int(response.headers.get("X-WP-TotalPages", 1)),
                items=items,
            )
        )

    # ------------------------------------------------------------------ #
    # Raw dispatch
    # ------------------------------------------------------------------ #

    async def dispatch(
        self,
        method: str,
        route: str,
        params: Optional[Dict[str, Any]] = None,
        acting_principal: Optional[Credentials] = None,
    ) -> Result[DispatchResponse]:
        """Send a request as ``acting_principal`` (or anonymously) and keep the raw status.

        ``route`` is relative to the REST root, e.g. ``/wp/v2/posts``. Params go
        in the query string for GET/DELETE and in a JSON body otherwise.
        """
        method = method.upper()
        in_query = method in ("GET", "HEAD", "DELETE")
        sent = await self._send(
            method,
            route,
            params=params if in_query else None,
            json=None if in_query else (params or {}),
            auth=acting_principal,
        )
        if not sent.ok:
            return sent
        response = sent.value
        return Ok(
            DispatchResponse(
                status_code=response.status_code,
                body=_decode(response),
                headers=dict(response.headers),
            )
        )


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
