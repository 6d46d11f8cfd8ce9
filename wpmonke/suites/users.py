"""User account checks: credentials, creation, lookup and deletion."""

from wpmonke.core.context import TestRunContext
from wpmonke.core.lifecycle import BaselinePrincipal
from wpmonke.core.results import ErrorKind
from wpmonke.suites.base import BaseSuite


class UserSuite(BaseSuite):
    suite_name = "users"
    description = "User CRUD and credential checks"
    baseline = BaselinePrincipal(prefix="test_user", secret="SecureTestPass123!")

    async def case_authentication_with_valid_credentials(self, ctx: TestRunContext) -> None:
        existing = self.expect_ok(
            await self.client.lookup_principal("id", ctx.baseline_principal_id),
            "Lookup should complete",
        )
        self.expect(existing is not None, "Test user should exist")

        acting = self.acting(ctx)
        user = self.expect_ok(
            await self.client.authenticate(acting.username, acting.secret),
            "Authentication should succeed with valid credentials",
        )
        self.expect_equal(ctx.baseline_principal_id, user.id, "Authenticated user id should match")

    async def case_authentication_with_invalid_password(self, ctx: TestRunContext) -> None:
        result = await self.client.authenticate(ctx.baseline_username, "wrong_password_123")
        self.expect_err(result, ErrorKind.INCORRECT_SECRET, "Invalid password should be rejected")

    async def case_authentication_with_nonexistent_username(self, ctx: TestRunContext) -> None:
        result = await self.client.authenticate(ctx.unique("nonexistent_user"), "some_password")
        self.expect_err(result, ErrorKind.INVALID_USERNAME, "Unknown username should be rejected")

    async def case_user_creation(self, ctx: TestRunContext) -> None:
        username, email = self.lifecycle.unique_identity("new_user")
        user_id = self.expect_ok(
            await self.lifecycle.create_principal(username, "NewUserPass123!", email),
            "User should be created",
        )
        self.expect(isinstance(user_id, int) and user_id > 0, "User id should be a positive int")

        user = self.expect_ok(
            await self.client.lookup_principal("id", user_id), "Lookup should complete"
        )
        self.expect(user is not None, "Created user should exist")
        self.expect_equal(username, user.username, "Username should match")
        self.expect_equal(email, user.email, "Email should match")

    async def case_get_user_by_id(self, ctx: TestRunContext) -> None:
        user = self.expect_ok(
            await self.client.lookup_principal("id", ctx.baseline_principal_id),
            "Lookup should complete",
        )
        self.expect(user is not None, "Should return the user")
        self.expect_equal(ctx.baseline_principal_id, user.id, "User id should match")

    async def case_get_user_by_login(self, ctx: TestRunContext) -> None:
        user = self.expect_ok(
            await self.client.lookup_principal("login", ctx.baseline_username),
            "Lookup should complete",
        )
        self.expect(user is not None, "Should return the user by login")
        self.expect_equal(ctx.baseline_principal_id, user.id, "User id should match")

    async def case_get_user_by_email(self, ctx: TestRunContext) -> None:
        user = self.expect_ok(
            await self.client.lookup_principal("email", ctx.baseline_email),
            "Lookup should complete",
        )
        self.expect(user is not None, "Should return the user by email")
        self.expect_equal(ctx.baseline_principal_id, user.id, "User id should match")

    async def case_user_deletion(self, ctx: TestRunContext) -> None:
        self.require("principal_deletion")

        username, email = self.lifecycle.unique_identity("temp_user")
        user_id = self.expect_ok(
            await self.lifecycle.create_principal(username, "temp_pass", email),
            "Temporary user should be created",
        )

        deleted = self.expect_ok(
            await self.client.delete_principal(user_id), "Deletion should succeed"
        )
        self.expect(deleted is not None, "Deletion should return the removed user")
        self.expect_equal(user_id, deleted.id, "Deleted user id should match")

        gone = self.expect_ok(
            await self.client.lookup_principal("id", user_id), "Lookup should complete"
        )
        self.expect(gone is None, "Deleted user should not exist")

        again = self.expect_ok(
            await self.client.delete_principal(user_id), "Deleting twice should not error"
        )
        self.expect(again is None, "Second deletion should be a no-op")
