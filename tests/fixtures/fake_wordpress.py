"""In-memory stand-in for the WordPress REST API.

Served through ``httpx.MockTransport`` so ``WordPressClient`` can be exercised
without a live site. Covers the ``/wp/v2`` users, posts, pages and
application-passwords routes the suites touch, with WordPress-shaped error
bodies and pagination headers.
"""

import base64
import json
import math
import re
import secrets
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

REST_PREFIX = "/wp-json"
BASE_URL = "http://wp.test"

ADMIN_USERNAME = "admin"
ADMIN_APP_PASSWORD = "abcd EFGH ijkl MNOP qrst UVWX"

VALID_STATUSES = ("publish", "future", "draft", "pending", "private")

ROLE_CAPS = {
    "subscriber": ["read", "level_0"],
    "contributor": ["read", "level_0", "level_1", "edit_posts", "delete_posts"],
    "author": [
        "read",
        "level_0",
        "level_1",
        "level_2",
        "edit_posts",
        "delete_posts",
        "publish_posts",
        "edit_published_posts",
        "delete_published_posts",
        "upload_files",
    ],
}
ROLE_CAPS["editor"] = ROLE_CAPS["author"] + [
    "level_7",
    "edit_others_posts",
    "delete_others_posts",
    "edit_pages",
    "edit_others_pages",
    "publish_pages",
    "delete_pages",
    "moderate_comments",
]
ROLE_CAPS["administrator"] = ROLE_CAPS["editor"] + [
    "level_10",
    "manage_options",
    "list_users",
    "create_users",
    "edit_users",
    "delete_users",
    "promote_users",
]


@dataclass
class FakeUser:
    id: int
    username: str
    email: str
    password: str
    roles: List[str]
    app_passwords: List[str] = field(default_factory=list)

    @property
    def caps(self) -> Dict[str, bool]:
        granted: Dict[str, bool] = {}
        for role in self.roles:
            granted[role] = True
            for cap in ROLE_CAPS.get(role, []):
                granted[cap] = True
        return granted

    def can(self, cap: str) -> bool:
        return self.caps.get(cap, False)

    def view(self, context: str) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.username,
            "slug": self.username.lower().replace("_", "-"),
        }
        if context == "edit":
            data.update(
                {
                    "username": self.username,
                    "email": self.email,
                    "roles": list(self.roles),
                    "capabilities": self.caps,
                }
            )
        return data


@dataclass
class FakePost:
    id: int
    type: str
    status: str
    author: int
    title: str = ""
    content: str = ""
    excerpt: str = ""

    def view(self, context: str) -> Dict[str, Any]:
        def field_view(raw: str, rendered: str) -> Dict[str, Any]:
            data: Dict[str, Any] = {"rendered": rendered}
            if context == "edit":
                data["raw"] = raw
            return data

        return {
            "id": self.id,
            "type": self.type,
            "status": self.status,
            "author": self.author,
            "title": field_view(self.title, self.title),
            "content": field_view(self.content, f"<p>{self.content}</p>\n" if self.content else ""),
            "excerpt": field_view(self.excerpt, f"<p>{self.excerpt}</p>\n" if self.excerpt else ""),
        }


@dataclass
class Fault:
    """A queued failure for the next request matching ``method`` and ``route``."""

    method: str
    route: re.Pattern
    status: int = 500
    code: str = "internal_server_error"
    transport: bool = False
    times: int = 1


class RestError(Exception):
    def __init__(self, status: int, code: str, message: str):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message


class FakeWordPress:
    """A tiny WordPress site: users, posts and pages kept in dictionaries."""

    def __init__(self, accept_account_passwords: bool = False):
        self.accept_account_passwords = accept_account_passwords
        self.users: Dict[int, FakeUser] = {}
        self.posts: Dict[int, FakePost] = {}
        self.requests: List[Tuple[str, str]] = []
        self.faults: List[Fault] = []
        self._next_user_id = 1
        self._next_post_id = 1
        self.admin = self.add_user(
            ADMIN_USERNAME, "admin@example.com", "admin-password", ["administrator"]
        )
        self.admin.app_passwords.append(ADMIN_APP_PASSWORD)

    # ------------------------------------------------------------------ #
    # Test helpers
    # ------------------------------------------------------------------ #

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_user(self, username: str, email: str, password: str, roles: List[str]) -> FakeUser:
        user = FakeUser(self._next_user_id, username, email, password, list(roles))
        self.users[user.id] = user
        self._next_user_id += 1
        return user

    def add_post(self, author: int, title: str, status: str = "publish", type: str = "post") -> FakePost:
        post = FakePost(self._next_post_id, type, status, author, title=title)
        self.posts[post.id] = post
        self._next_post_id += 1
        return post

    def fail(
        self,
        method: str,
        route: str,
        status: int = 500,
        code: str = "internal_server_error",
        transport: bool = False,
        times: int = 1,
    ) -> None:
        """Make the next ``times`` requests matching ``route`` (a regex) fail."""
        self.faults.append(
            Fault(method.upper(), re.compile(route), status, code, transport, times)
        )

    def user_by_login(self, username: str) -> Optional[FakeUser]:
        for user in self.users.values():
            if user.username.lower() == username.lower():
                return user
        return None

    def calls(self, method: str, route_prefix: str = "") -> List[str]:
        return [r for m, r in self.requests if m == method and r.startswith(route_prefix)]

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def handle(self, request: httpx.Request) -> httpx.Response:
        route = request.url.path
        if route.startswith(REST_PREFIX):
            route = route[len(REST_PREFIX):]
        method = request.method.upper()
        self.requests.append((method, route))

        fault = self._take_fault(method, route)
        if fault is not None:
            if fault.transport:
                raise httpx.ConnectError("connection refused", request=request)
            return _error(fault.status, fault.code, "Injected failure")

        params = dict(request.url.params)
        body: Dict[str, Any] = {}
        if request.content:
            body = json.loads(request.content)

        try:
            actor = self._authenticate(request)
            return self._route(method, route, params, body, actor)
        except RestError as e:
            return _error(e.status, e.code, e.message)

    def _take_fault(self, method: str, route: str) -> Optional[Fault]:
        for fault in self.faults:
            if fault.method == method and fault.route.search(route):
                fault.times -= 1
                if fault.times <= 0:
                    self.faults.remove(fault)
                return fault
        return None

    def _authenticate(self, request: httpx.Request) -> Optional[FakeUser]:
        header = request.headers.get("Authorization")
        if not header or not header.startswith("Basic "):
            return None
        decoded = base64.b64decode(header[len("Basic "):]).decode()
        username, _, secret = decoded.partition(":")
        user = self.user_by_login(username)
        if user is None:
            raise RestError(401, "invalid_username", "Unknown username.")
        normalized = secret.replace(" ", "")
        if any(normalized == p.replace(" ", "") for p in user.app_passwords):
            return user
        if self.accept_account_passwords and secret == user.password:
            return user
        raise RestError(401, "incorrect_password", "The provided password is invalid.")

    def _route(
        self,
        method: str,
        route: str,
        params: Dict[str, str],
        body: Dict[str, Any],
        actor: Optional[FakeUser],
    ) -> httpx.Response:
        routes: List[Tuple[str, str, Callable[..., httpx.Response]]] = [
            ("GET", r"^/wp/v2/users/me$", self._get_me),
            ("GET", r"^/wp/v2/users$", self._list_users),
            ("POST", r"^/wp/v2/users$", self._create_user),
            ("POST", r"^/wp/v2/users/(\d+)/application-passwords$", self._create_app_password),
            ("GET", r"^/wp/v2/users/(\d+)$", self._get_user),
            ("POST", r"^/wp/v2/users/(\d+)$", self._update_user),
            ("DELETE", r"^/wp/v2/users/(\d+)$", self._delete_user),
            ("GET", r"^/wp/v2/(posts|pages)$", self._list_posts),
            ("POST", r"^/wp/v2/(posts|pages)$", self._create_post),
            ("GET", r"^/wp/v2/(posts|pages)/(\d+)$", self._get_post),
            ("POST", r"^/wp/v2/(posts|pages)/(\d+)$", self._update_post),
            ("PUT", r"^/wp/v2/(posts|pages)/(\d+)$", self._update_post),
            ("PATCH", r"^/wp/v2/(posts|pages)/(\d+)$", self._update_post),
            ("DELETE", r"^/wp/v2/(posts|pages)/(\d+)$", self._delete_post),
        ]
        for route_method, pattern, handler in routes:
            match = re.match(pattern, route)
            if not match:
                continue
            if route_method == method:
                return handler(actor, params, body, *match.groups())
        raise RestError(404, "rest_no_route", "No route was found matching the URL and request method.")

    # ------------------------------------------------------------------ #
    # Users
    # ------------------------------------------------------------------ #

    def _require_user(self, user_id: str) -> FakeUser:
        user = self.users.get(int(user_id))
        if user is None:
            raise RestError(404, "rest_user_invalid_id", "Invalid user ID.")
        return user

    def _require_cap(self, actor: Optional[FakeUser], cap: str, code: str) -> FakeUser:
        if actor is None:
            raise RestError(401, code, "Sorry, you are not allowed to do that.")
        if not actor.can(cap):
            raise RestError(403, code, "Sorry, you are not allowed to do that.")
        return actor

    def _get_me(self, actor, params, body) -> httpx.Response:
        if actor is None:
            raise RestError(401, "rest_not_logged_in", "You are not currently logged in.")
        return _json(200, actor.view(params.get("context", "view")))

    def _list_users(self, actor, params, body) -> httpx.Response:
        context = params.get("context", "view")
        if context == "edit":
            self._require_cap(actor, "list_users", "rest_forbidden_context")
        users = sorted(self.users.values(), key=lambda u: u.id)
        if "search" in params:
            needle = params["search"].lower()
            users = [
                u
                for u in users
                if needle in u.username.lower() or needle in u.email.lower()
            ]
        if "slug" in params:
            users = [u for u in users if u.view("view")["slug"] == params["slug"]]
        per_page = int(params.get("per_page", 10))
        return _json(200, [u.view(context) for u in users[:per_page]])

    def _create_user(self, actor, params, body) -> httpx.Response:
        self._require_cap(actor, "create_users", "rest_cannot_create_user")
        username, email = body.get("username", ""), body.get("email", "")
        if not username or not email or not body.get("password"):
            raise RestError(400, "rest_missing_callback_param", "Missing parameter(s)")
        if self.user_by_login(username) is not None:
            raise RestError(500, "existing_user_login", "Sorry, that username already exists!")
        if any(u.email.lower() == email.lower() for u in self.users.values()):
            raise RestError(500, "existing_user_email", "Sorry, that email address is already used!")
        roles = body.get("roles") or ["subscriber"]
        for role in roles:
            if role not in ROLE_CAPS:
                raise RestError(400, "rest_user_invalid_role", "Role is invalid.")
        user = self.add_user(username, email, body["password"], roles)
        return _json(201, user.view("edit"))

    def _create_app_password(self, actor, params, body, user_id) -> httpx.Response:
        self._require_cap(actor, "edit_users", "rest_cannot_create_application_passwords")
        user = self._require_user(user_id)
        password = " ".join(secrets.token_hex(2) for _ in range(6))
        user.app_passwords.append(password)
        return _json(201, {"uuid": secrets.token_hex(16), "name": body.get("name"), "password": password})

    def _get_user(self, actor, params, body, user_id) -> httpx.Response:
        context = params.get("context", "view")
        if context == "edit":
            self._require_cap(actor, "list_users", "rest_forbidden_context")
        return _json(200, self._require_user(user_id).view(context))

    def _update_user(self, actor, params, body, user_id) -> httpx.Response:
        self._require_cap(actor, "edit_users", "rest_cannot_edit")
        user = self._require_user(user_id)
        if "roles" in body:
            user.roles = list(body["roles"])
        return _json(200, user.view("edit"))

    def _delete_user(self, actor, params, body, user_id) -> httpx.Response:
        self._require_cap(actor, "delete_users", "rest_user_cannot_delete")
        if params.get("force") != "true":
            raise RestError(501, "rest_trash_not_supported", "Users do not support trashing.")
        if "reassign" not in params:
            raise RestError(400, "rest_missing_callback_param", "Missing parameter(s): reassign")
        user = self._require_user(user_id)
        reassign = params["reassign"]
        for post in list(self.posts.values()):
            if post.author == user.id:
                if reassign:
                    post.author = int(reassign)
                else:
                    del self.posts[post.id]
        del self.users[user.id]
        return _json(200, {"deleted": True, "previous": user.view("edit")})

    # ------------------------------------------------------------------ #
    # Posts and pages
    # ------------------------------------------------------------------ #

    def _require_post(self, rest_base: str, post_id: str) -> FakePost:
        post = self.posts.get(int(post_id))
        if post is None or post.type != _post_type(rest_base):
            raise RestError(404, "rest_post_invalid_id", "Invalid post ID.")
        return post

    def _edit_cap(self, rest_base: str) -> str:
        return "edit_pages" if rest_base == "pages" else "edit_posts"

    def _check_status(self, body: Dict[str, Any]) -> None:
        status = body.get("status")
        if status is not None and status not in VALID_STATUSES:
            raise RestError(
                400,
                "rest_invalid_param",
                f"Invalid parameter(s): status (status is not one of {', '.join(VALID_STATUSES)}.)",
            )

    def _check_author(self, actor: FakeUser, body: Dict[str, Any]) -> None:
        author = body.get("author")
        if author is None or author == actor.id:
            return
        if not actor.can("edit_others_posts"):
            raise RestError(403, "rest_cannot_edit_others", "Not allowed to post as this user.")
        if int(author) not in self.users:
            raise RestError(400, "rest_invalid_author", "Invalid author ID.")

    def _list_posts(self, actor, params, body, rest_base) -> httpx.Response:
        context = params.get("context", "view")
        if context == "edit":
            self._require_cap(actor, self._edit_cap(rest_base), "rest_forbidden_context")
        per_page = int(params.get("per_page", 10))
        if not 1 <= per_page <= 100:
            raise RestError(400, "rest_invalid_param", "Invalid parameter(s): per_page")
        page = int(params.get("page", 1))

        status = params.get("status", "publish")
        if status != "publish" and actor is None:
            raise RestError(400, "rest_invalid_param", "Invalid parameter(s): status")
        matches = [
            p
            for p in sorted(self.posts.values(), key=lambda p: p.id, reverse=True)
            if p.type == _post_type(rest_base)
            and (status == "any" and p.status != "trash" or p.status == status)
        ]
        if "author" in params:
            matches = [p for p in matches if p.author == int(params["author"])]
        if "search" in params:
            needle = params["search"].lower()
            matches = [p for p in matches if needle in p.title.lower() or needle in p.content.lower()]

        total = len(matches)
        total_pages = math.ceil(total / per_page) if total else 0
        if total and page > total_pages:
            raise RestError(400, "rest_post_invalid_page_number", "Page number too large.")
        window = matches[(page - 1) * per_page : page * per_page]
        return _json(
            200,
            [p.view(context) for p in window],
            headers={"X-WP-Total": str(total), "X-WP-TotalPages": str(total_pages)},
        )

    def _create_post(self, actor, params, body, rest_base) -> httpx.Response:
        actor = self._require_cap(actor, self._edit_cap(rest_base), "rest_cannot_create")
        self._check_status(body)
        self._check_author(actor, body)
        post = self.add_post(
            author=int(body.get("author") or actor.id),
            title=body.get("title", ""),
            status=body.get("status", "draft"),
            type=_post_type(rest_base),
        )
        post.content = body.get("content", "")
        post.excerpt = body.get("excerpt", "")
        return _json(201, post.view("edit"))

    def _get_post(self, actor, params, body, rest_base, post_id) -> httpx.Response:
        post = self._require_post(rest_base, post_id)
        context = params.get("context", "view")
        if context == "edit" or post.status != "publish":
            self._require_cap(actor, self._edit_cap(rest_base), "rest_forbidden")
        return _json(200, post.view(context))

    def _update_post(self, actor, params, body, rest_base, post_id) -> httpx.Response:
        actor = self._require_cap(actor, self._edit_cap(rest_base), "rest_cannot_edit")
        post = self._require_post(rest_base, post_id)
        if post.author != actor.id and not actor.can("edit_others_posts"):
            raise RestError(403, "rest_cannot_edit", "Sorry, you are not allowed to edit this post.")
        self._check_status(body)
        self._check_author(actor, body)
        for key in ("title", "content", "excerpt", "status"):
            if key in body:
                setattr(post, key, body[key])
        if "author" in body:
            post.author = int(body["author"])
        return _json(200, post.view("edit"))

    def _delete_post(self, actor, params, body, rest_base, post_id) -> httpx.Response:
        actor = self._require_cap(actor, self._edit_cap(rest_base), "rest_cannot_delete")
        post = self._require_post(rest_base, post_id)
        if post.author != actor.id and not actor.can("delete_others_posts"):
            raise RestError(403, "rest_cannot_delete", "Sorry, you are not allowed to delete this post.")
        if params.get("force") == "true":
            previous = post.view("edit")
            del self.posts[post.id]
            return _json(200, {"deleted": True, "previous": previous})
        if post.status == "trash":
            raise RestError(410, "rest_already_trashed", "The post has already been deleted.")
        post.status = "trash"
        return _json(200, post.view("edit"))


def _post_type(rest_base: str) -> str:
    return "page" if rest_base == "pages" else "post"


def _json(status: int, data: Any, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    return httpx.Response(status, json=data, headers=headers)


def _error(status: int, code: str, message: str) -> httpx.Response:
    return _json(status, {"code": code, "message": message, "data": {"status": status}})
