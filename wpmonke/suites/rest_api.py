"""REST dispatch: routes, status codes and the authorization gate."""

from wpmonke.core.context import TestRunContext
from wpmonke.core.lifecycle import BaselinePrincipal
from wpmonke.suites.base import BaseSuite

POSTS_ROUTE = "/wp/v2/posts"
MISSING_POST_ID = 999999999


class RestApiSuite(BaseSuite):
    """Posts endpoints, hit anonymously and as an editor."""

    suite_name = "rest_api"
    description = "REST API endpoint checks"
    baseline = BaselinePrincipal(prefix="api_test_user", secret="ApiTestPass123!", role="editor")

    async def _request(self, method, route, params=None, credentials=None):
        return self.expect_ok(
            await self.client.dispatch(method, route, params=params, acting_principal=credentials),
            f"{method} {route} should complete",
        )

    async def case_get_posts_endpoint(self, ctx: TestRunContext) -> None:
        for i in range(1, 4):
            await self.create_post(ctx, f"API Test Post {i}", f"Content for API test post {i}")

        response = await self._request(
            "GET", POSTS_ROUTE, params={"author": ctx.baseline_principal_id}
        )
        self.expect_equal(200, response.status_code, "Response status should be 200")
        self.expect(isinstance(response.body, list), "Response data should be a list")
        self.expect_equal(3, len(response.body), "Should return the 3 posts")
        for field in ("id", "title", "content", "status"):
            self.expect(field in response.body[0], f"Post should have {field} field")

    async def case_create_post_via_api(self, ctx: TestRunContext) -> None:
        payload = {
            "title": "API Created Post",
            "content": "This post was created via REST API.",
            "status": "publish",
        }
        response = await self._request("POST", POSTS_ROUTE, payload, self.acting(ctx))
        self.expect_equal(201, response.status_code, "Response status should be 201 (Created)")

        post_id = response.body.get("id") if isinstance(response.body, dict) else None
        self.expect(isinstance(post_id, int) and post_id > 0, "Response should include a post id")
        self.lifecycle.track(post_id)

        post = self.expect_ok(await self.client.lookup_content(post_id), "Lookup should complete")
        self.expect(post is not None, "Post should exist")
        self.expect_equal(payload["title"], post.title, "Post title should match")
        self.expect_equal(payload["status"], post.status, "Post status should match")

    async def case_get_single_post_endpoint(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Single Post API Test", "Single post content")

        response = await self._request("GET", f"{POSTS_ROUTE}/{post_id}")
        self.expect_equal(200, response.status_code, "Response status should be 200")
        self.expect_equal(post_id, response.body.get("id"), "Post id should match")
        self.expect_equal(
            "Single Post API Test", response.body["title"]["rendered"], "Post title should match"
        )

    async def case_update_post_via_api(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Original Title", "Original content")

        response = await self._request(
            "PUT",
            f"{POSTS_ROUTE}/{post_id}",
            {"title": "Updated Title via API", "content": "Updated content via API"},
            self.acting(ctx),
        )
        self.expect_equal(200, response.status_code, "Response status should be 200")
        self.expect_equal(post_id, response.body.get("id"), "Post id should match")

        post = self.expect_ok(await self.client.lookup_content(post_id), "Lookup should complete")
        self.expect_equal("Updated Title via API", post.title, "Post title should be updated")
        self.expect(
            "Updated content via API" in post.content, "Post content should be updated"
        )

    async def case_delete_post_via_api(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Post to Delete", "This post will be deleted")

        response = await self._request("DELETE", f"{POSTS_ROUTE}/{post_id}", None, self.acting(ctx))
        self.expect_equal(200, response.status_code, "Response status should be 200")
        self.expect_equal("trash", response.body.get("status"), "Unforced delete should trash")

        post = self.expect_ok(await self.client.lookup_content(post_id), "Lookup should complete")
        self.expect(post is not None, "Trashed post should still resolve")
        self.expect_equal("trash", post.status, "Post should be in trash")

    async def case_api_authentication_requirement(self, ctx: TestRunContext) -> None:
        response = await self._request(
            "POST",
            POSTS_ROUTE,
            {"title": "Unauthenticated Post", "content": "This should fail", "status": "publish"},
        )
        if response.status_code < 300 and isinstance(response.body, dict) and "id" in response.body:
            self.lifecycle.track(response.body["id"])
        self.expect_equal(401, response.status_code, "Should return 401 Unauthorized")

    async def case_api_pagination(self, ctx: TestRunContext) -> None:
        for i in range(1, 16):
            await self.create_post(ctx, f"Pagination Test Post {i}", "Content")

        response = await self._request(
            "GET",
            POSTS_ROUTE,
            {"per_page": 5, "page": 1, "author": ctx.baseline_principal_id},
        )
        self.expect_equal(200, response.status_code, "Response status should be 200")
        self.expect_equal(5, len(response.body), "Should return exactly one page of 5 posts")
        self.expect_equal("15", response.header("X-WP-Total"), "Total should count all 15 posts")
        self.expect_equal("3", response.header("X-WP-TotalPages"), "Should report 3 pages")

    async def case_api_error_handling(self, ctx: TestRunContext) -> None:
        missing = await self._request("GET", f"{POSTS_ROUTE}/{MISSING_POST_ID}")
        self.expect_equal(404, missing.status_code, "Should return 404 for non-existent post")

        invalid = await self._request(
            "POST",
            POSTS_ROUTE,
            {"title": "Test", "content": "Content", "status": "invalid_status_xyz123"},
            self.acting(ctx),
        )
        if invalid.status_code < 300 and isinstance(invalid.body, dict) and "id" in invalid.body:
            self.lifecycle.track(invalid.body["id"])
        self.expect_equal(400, invalid.status_code, "Invalid status should be rejected with 400")
        self.expect_equal("rest_invalid_param", invalid.error_code, "Invalid param error code")
