"""Base suite class for all WordPress contract scenarios."""

import inspect
from typing import Any, List, Optional

from wpmonke.client.models import ContentFields, Credentials
from wpmonke.client.wordpress import WordPressClient
from wpmonke.core.config import HarnessConfig
from wpmonke.core.context import TestRunContext
from wpmonke.core.lifecycle import BaselinePrincipal, FixtureLifecycle, SkipTest
from wpmonke.core.results import ErrorKind, Result, WordPressError
from wpmonke.utils.logging import get_logger

CASE_PREFIX = "case_"


class ExpectationError(AssertionError):
    """The site's behavior diverged from the documented contract."""


class BaseSuite:
    """Base class for all suites.

    A suite groups cases that share one baseline principal. Each ``case_*``
    coroutine receives the ``TestRunContext`` of a fresh fixture session;
    ``self.lifecycle`` is the lifecycle driving that session.
    """

    suite_name: Optional[str] = None
    description: str = ""
    baseline: Optional[BaselinePrincipal] = None

    def __init__(self, client: WordPressClient, config: HarnessConfig):
        self.client = client
        self.config = config
        self.lifecycle: Optional[FixtureLifecycle] = None
        self.logger = get_logger(f"suite.{self.suite_name or self.__class__.__name__}")

    @classmethod
    def list_cases(cls) -> List[str]:
        """``case_*`` coroutine names in definition order, base classes first."""
        names: List[str] = []
        for klass in reversed(cls.__mro__):
            for name, member in vars(klass).items():
                if not name.startswith(CASE_PREFIX) or name in names:
                    continue
                if inspect.iscoroutinefunction(member):
                    names.append(name)
        return names

    # ------------------------------------------------------------------ #
    # Expectations
    # ------------------------------------------------------------------ #

    def expect(self, condition: Any, message: str) -> None:
        if not condition:
            raise ExpectationError(message)

    def expect_equal(self, expected: Any, actual: Any, message: str) -> None:
        if expected != actual:
            raise ExpectationError(f"{message} (expected {expected!r}, got {actual!r})")

    def expect_ok(self, result: Result, message: str) -> Any:
        """Unwrap ``result`` or fail with the site's error."""
        if not result.ok:
            raise ExpectationError(f"{message}: {result.error}")
        return result.value

    def expect_err(self, result: Result, kind: ErrorKind, message: str) -> WordPressError:
        if result.ok:
            raise ExpectationError(f"{message} (expected {kind.value} error, got {result.value!r})")
        self.expect_equal(kind, result.error.kind, message)
        return result.error

    def require(self, capability: str) -> None:
        """Skip the case when the environment lacks ``capability``."""
        if not getattr(self.config.capabilities, capability):
            raise SkipTest(f"Environment does not support {capability}")

    # ------------------------------------------------------------------ #
    # Fixtures
    # ------------------------------------------------------------------ #

    async def create_post(
        self,
        ctx: TestRunContext,
        title: str,
        content: str = "",
        status: str = "publish",
        **extra: Any,
    ) -> int:
        """Create a tracked post authored by the baseline principal."""
        fields = ContentFields(
            title=title,
            content=content,
            status=status,
            author=ctx.baseline_principal_id,
            **extra,
        )
        return self.expect_ok(
            await self.lifecycle.create_content(fields), f"Post '{title}' should be created"
        )

    async def login_secret(self, principal_id: int, password: str) -> str:
        """The secret a principal presents over HTTP Basic auth."""
        if self.config.capabilities.login_password_auth:
            return password
        return self.expect_ok(
            await self.client.issue_application_password(principal_id, "wpmonke"),
            f"Application password for user {principal_id} should be issued",
        )

    def acting(self, ctx: TestRunContext) -> Credentials:
        self.expect(ctx.acting is not None, "Suite needs a baseline principal")
        return ctx.acting
