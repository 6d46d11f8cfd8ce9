"""Fixture lifecycle: unique ephemeral entities per case and guaranteed cleanup.

A case runs as::

    lifecycle = FixtureLifecycle(client, config.capabilities, config.fixtures, baseline)
    async with lifecycle.session() as ctx:
        ...  # body; create through lifecycle helpers or call track()

``begin_test()`` builds the baseline principal and raises ``SkipTest`` when it
cannot. ``end_test()`` removes everything that was tracked, exactly once, and
never raises for a failed delete.
"""

import random
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Tuple

from wpmonke.client.models import ContentFields, Credentials
from wpmonke.client.wordpress import WordPressClient
from wpmonke.core import events
from wpmonke.core.config import Capabilities, FixtureConfig
from wpmonke.core.context import (
    ENTITY_CONTENT,
    ENTITY_PRINCIPAL,
    EntityRecord,
    FixtureState,
    TestRunContext,
)
from wpmonke.core.results import ErrorKind, Result, WordPressError, error_payload
from wpmonke.utils.logging import get_logger


class SkipTest(Exception):
    """A case could not be evaluated because its fixtures could not be built."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class BaselinePrincipal:
    """The principal every case of a suite needs before its body runs."""

    prefix: str
    secret: str
    role: Optional[str] = None

    @property
    def email_prefix(self) -> str:
        return self.prefix.replace("_", "")


def make_token(
    digits: int = 5,
    clock: Callable[[], float] = time.time,
    rng: Optional[random.Random] = None,
) -> str:
    """``<unix seconds>_<random int with ``digits`` digits>``."""
    rng = rng or random
    low, high = 10 ** (digits - 1), 10**digits - 1
    return f"{int(clock())}_{rng.randint(low, high)}"


class FixtureLifecycle:
    """Creates, tracks and removes the fixtures of a single case."""

    def __init__(
        self,
        client: WordPressClient,
        capabilities: Capabilities,
        fixtures: Optional[FixtureConfig] = None,
        baseline: Optional[BaselinePrincipal] = None,
        run_id: Optional[str] = None,
        case_name: str = "case",
    ):
        self.client = client
        self.capabilities = capabilities
        self.fixtures = fixtures or FixtureConfig()
        self.baseline = baseline
        self.run_id = run_id or f"run-{int(time.time() * 1000)}"
        self.case_name = case_name
        self.context: Optional[TestRunContext] = None
        self.logger = get_logger(f"lifecycle.{case_name}")

    # ------------------------------------------------------------------ #
    # begin / track / end
    # ------------------------------------------------------------------ #

    async def begin_test(self) -> TestRunContext:
        """Generate the token and build the baseline fixtures."""
        if self.context is not None:
            raise RuntimeError("begin_test() already called for this lifecycle")

        ctx = TestRunContext(token=make_token(self.fixtures.random_suffix_digits))
        self.context = ctx

        if self.baseline is not None:
            try:
                await self._create_baseline(ctx, self.baseline)
            except SkipTest:
                raise
            except Exception as e:
                await self._skip(ctx, f"Failed to create test user: {e}")

        ctx.transition(FixtureState.FIXTURES_READY)
        self.logger.info(f"🔧 Fixtures ready (token {ctx.token})")
        await self._emit(
            "fixtures_ready",
            {"token": ctx.token, "baseline_principal_id": ctx.baseline_principal_id},
        )
        return ctx

    def track(
        self, entity_id: Any, kind: str = ENTITY_CONTENT, content_type: str = "post"
    ) -> EntityRecord:
        """Record an entity created by the case body so cleanup removes it."""
        ctx = self._require_context()
        record = EntityRecord(
            kind=kind, entity_id=entity_id, token=ctx.token, content_type=content_type
        )
        ctx.tracked.append(record)
        return record

    def track_principal(self, principal_id: Any) -> EntityRecord:
        return self.track(principal_id, kind=ENTITY_PRINCIPAL)

    async def end_test(self) -> List[WordPressError]:
        """Delete everything tracked plus the baseline principal. Runs once."""
        ctx = self.context
        if ctx is None or ctx.state == FixtureState.CLEANED_UP:
            return []

        for record in list(ctx.tracked):
            await self._release(ctx, record)

        if ctx.baseline_principal_id is not None:
            await self._release(
                ctx, EntityRecord(ENTITY_PRINCIPAL, ctx.baseline_principal_id, ctx.token)
            )

        ctx.tracked.clear()
        ctx.transition(FixtureState.CLEANED_UP)

        if ctx.cleanup_errors:
            self.logger.warning(f"⚠️ Cleanup finished with {len(ctx.cleanup_errors)} error(s)")
        else:
            self.logger.info("🧹 Cleanup completed")
        await self._emit("cleanup_completed", {"errors": len(ctx.cleanup_errors)})
        return list(ctx.cleanup_errors)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[TestRunContext]:
        """Run a case body between ``begin_test()`` and ``end_test()``.

        Partial fixtures are removed before any exception leaves setup, and
        ``end_test()`` runs on every exit path of the body.
        """
        try:
            ctx = await self.begin_test()
        except SkipTest:
            await self.end_test()
            raise
        except BaseException:
            interrupted = self.context
            if interrupted is not None and interrupted.state == FixtureState.NOT_STARTED:
                interrupted.transition(FixtureState.ERRORED)
            await self.end_test()
            raise

        ctx.transition(FixtureState.BODY_RUNNING)
        try:
            yield ctx
        except SkipTest:
            ctx.transition(FixtureState.SKIPPED)
            raise
        except AssertionError:
            ctx.transition(FixtureState.FAILED)
            raise
        except BaseException:
            ctx.transition(FixtureState.ERRORED)
            raise
        else:
            ctx.transition(FixtureState.PASSED)
        finally:
            await self.end_test()

    # ------------------------------------------------------------------ #
    # Creation helpers used by case bodies
    # ------------------------------------------------------------------ #

    def unique_identity(self, prefix: str) -> Tuple[str, str]:
        """A fresh ``(username, email)`` pair for an extra principal."""
        suffix = make_token(self.fixtures.random_suffix_digits)
        username = f"{prefix}_{suffix}"
        email = f"{prefix.replace('_', '')}{suffix}@{self.fixtures.email_domain}"
        return username, email

    async def create_principal(
        self, username: str, secret: str, email: str, roles: Optional[Iterable[str]] = None
    ) -> Result[int]:
        """Create an extra principal and track it on success."""
        self._require_context()
        result = await self.client.create_principal(username, secret, email, roles=roles)
        if result.ok:
            self.track_principal(result.value)
        else:
            self.logger.warning(f"⚠️ Could not create principal {username}: {result.message}")
        return result

    async def create_content(self, fields: ContentFields) -> Result[int]:
        """Create content and track it on success."""
        self._require_context()
        result = await self.client.create_content(fields)
        if result.ok:
            self.track(result.value, content_type=fields.type)
        return result

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _require_context(self) -> TestRunContext:
        if self.context is None:
            raise RuntimeError("begin_test() has not been called")
        return self.context

    async def _create_baseline(self, ctx: TestRunContext, baseline: BaselinePrincipal) -> None:
        username = ctx.unique(baseline.prefix)
        email = f"{baseline.email_prefix}{ctx.token}@{self.fixtures.email_domain}"
        roles = [baseline.role] if baseline.role else None

        created = await self.client.create_principal(username, baseline.secret, email, roles=roles)
        if not created.ok:
            await self._skip(ctx, f"Failed to create test user: {created.message}")

        ctx.baseline_principal_id = created.value
        ctx.baseline_username = username
        ctx.baseline_email = email
        self.logger.info(f"👤 Created baseline principal {username} ({created.value})")

        secret = baseline.secret
        if not self.capabilities.login_password_auth:
            issued = await self.client.issue_application_password(
                created.value, f"wpmonke {ctx.token}"
            )
            if not issued.ok:
                await self._skip(
                    ctx, f"Failed to create test user: no application password: {issued.message}"
                )
            secret = issued.value
        ctx.acting = Credentials(username=username, secret=secret)

    async def _skip(self, ctx: TestRunContext, reason: str) -> None:
        ctx.transition(FixtureState.SKIPPED)
        self.logger.warning(f"⏭️ Skipping {self.case_name}: {reason}")
        await self._emit("fixtures_skipped", {"reason": reason})
        raise SkipTest(reason)

    async def _release(self, ctx: TestRunContext, record: EntityRecord) -> None:
        """Delete one entity if it still exists; failures are recorded, not raised."""
        try:
            error = await self._delete_if_present(record)
        except Exception as e:
            error = WordPressError(kind=ErrorKind.OTHER, code="cleanup_exception", message=str(e))

        if error is None:
            return

        ctx.cleanup_errors.append(error)
        self.logger.error(f"❌ Failed to delete {record.kind} {record.entity_id}: {error}")
        await self._emit(
            "cleanup_failed",
            {"kind": record.kind, "entity_id": record.entity_id, "error": error_payload(error)},
        )

    async def _delete_if_present(self, record: EntityRecord) -> Optional[WordPressError]:
        if record.kind == ENTITY_PRINCIPAL:
            if not self.capabilities.principal_deletion:
                self.logger.warning(
                    f"⚠️ Principal deletion unsupported; leaving user {record.entity_id}"
                )
                return None
            found = await self.client.lookup_principal("id", record.entity_id)
            if found.ok and found.value is None:
                return None
            deleted = await self.client.delete_principal(record.entity_id)
        else:
            found = await self.client.lookup_content(record.entity_id, record.content_type)
            if found.ok and found.value is None:
                return None
            deleted = await self.client.delete_content(
                record.entity_id, permanent=True, content_type=record.content_type
            )

        if not deleted.ok:
            return deleted.error
        self.logger.debug(f"🗑️ Deleted {record.kind} {record.entity_id}")
        return None

    async def _emit(self, event_type: str, extra: Optional[dict] = None) -> None:
        payload = {
            "type": event_type,
            "run_id": self.run_id,
            "ts": time.time(),
            "case": self.case_name,
        }
        if extra:
            payload.update(extra)
        await events.publish(payload)
