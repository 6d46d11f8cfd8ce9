"""Authentication flows: login, logout, wrong secrets and per-role logins."""

from wpmonke.core.context import TestRunContext
from wpmonke.core.lifecycle import BaselinePrincipal
from wpmonke.core.results import ErrorKind
from wpmonke.suites.base import BaseSuite

ROLES = ("subscriber", "author", "editor", "administrator")
ROLE_PASSWORD = "TestPass123!"


class AuthenticationSuite(BaseSuite):
    """Login and session behavior for a freshly created subscriber."""

    suite_name = "authentication"
    description = "Login, logout and session checks"
    baseline = BaselinePrincipal(prefix="auth_test_user", secret="SecureTestPass123!")

    async def _whoami(self, credentials=None):
        return self.expect_ok(
            await self.client.dispatch("GET", "/wp/v2/users/me", acting_principal=credentials),
            "Request to /users/me should complete",
        )

    async def case_complete_login_flow(self, ctx: TestRunContext) -> None:
        anonymous = await self._whoami()
        self.expect_equal(401, anonymous.status_code, "No user should be logged in initially")

        acting = self.acting(ctx)
        user = self.expect_ok(
            await self.client.authenticate(acting.username, acting.secret),
            "Authentication should succeed",
        )
        self.expect_equal(ctx.baseline_principal_id, user.id, "Authenticated user id should match")
        self.expect_equal(ctx.baseline_username, user.username, "Username should match")

        me = await self._whoami(acting)
        self.expect_equal(200, me.status_code, "Logged in user should reach /users/me")
        self.expect_equal(ctx.baseline_principal_id, me.body.get("id"), "Current user id")

    async def case_logout_flow(self, ctx: TestRunContext) -> None:
        me = await self._whoami(self.acting(ctx))
        self.expect_equal(200, me.status_code, "User should be logged in")

        # Dropping the credentials is the REST equivalent of logging out
        after = await self._whoami()
        self.expect_equal(401, after.status_code, "User should be logged out")
        self.expect_equal("rest_not_logged_in", after.error_code, "Not-logged-in error code")

    async def case_incorrect_password(self, ctx: TestRunContext) -> None:
        result = await self.client.authenticate(ctx.baseline_username, "wrong_password_123")
        error = self.expect_err(
            result, ErrorKind.INCORRECT_SECRET, "Wrong password should be rejected"
        )
        self.expect_equal("incorrect_password", error.code, "Wrong password error code")

        anonymous = await self._whoami()
        self.expect_equal(401, anonymous.status_code, "Failed login must not create a session")

    async def case_capabilities_after_login(self, ctx: TestRunContext) -> None:
        acting = self.acting(ctx)
        user = self.expect_ok(
            await self.client.authenticate(acting.username, acting.secret),
            "Authentication should succeed",
        )
        self.expect(user.can("read"), "User should have read capability")
        # Default role is subscriber
        self.expect(not user.can("manage_options"), "Subscriber must not have manage_options")

    async def case_multiple_login_attempts(self, ctx: TestRunContext) -> None:
        acting = self.acting(ctx)
        for attempt in (1, 2):
            user = self.expect_ok(
                await self.client.authenticate(acting.username, acting.secret),
                f"Login attempt {attempt} should succeed",
            )
            self.expect_equal(ctx.baseline_principal_id, user.id, f"Attempt {attempt} user id")
            anonymous = await self._whoami()
            self.expect_equal(401, anonymous.status_code, f"Logged out after attempt {attempt}")

    async def case_authentication_with_different_roles(self, ctx: TestRunContext) -> None:
        for role in ROLES:
            username, email = self.lifecycle.unique_identity(f"role_test_{role}")
            user_id = self.expect_ok(
                await self.lifecycle.create_principal(username, ROLE_PASSWORD, email, roles=[role]),
                f"User with role {role} should be created",
            )
            secret = await self.login_secret(user_id, ROLE_PASSWORD)
            user = self.expect_ok(
                await self.client.authenticate(username, secret),
                f"User with role {role} should authenticate",
            )
            self.expect(role in user.roles, f"User should carry role {role}")

            if self.config.capabilities.principal_deletion:
                self.expect_ok(
                    await self.client.delete_principal(user_id), f"User with role {role} deleted"
                )

    async def case_session_persistence(self, ctx: TestRunContext) -> None:
        acting = self.acting(ctx)
        for request in (1, 2):
            me = await self._whoami(acting)
            self.expect_equal(200, me.status_code, f"Request {request} should stay logged in")
            self.expect_equal(
                ctx.baseline_principal_id, me.body.get("id"), f"Request {request} user id"
            )
