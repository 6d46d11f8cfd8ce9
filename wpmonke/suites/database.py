"""Content queries: retrieval, status filtering, timing and delete isolation."""

import time

from wpmonke.client.models import ContentQuery
from wpmonke.core.context import TestRunContext
from wpmonke.core.lifecycle import BaselinePrincipal
from wpmonke.suites.base import BaseSuite


class DatabaseSuite(BaseSuite):
    """Query-side checks.

    Every query filters on the baseline author, whose name is unique to the
    case, so counts are exact even on a shared site.
    """

    suite_name = "database"
    description = "Content query checks"
    baseline = BaselinePrincipal(prefix="db_test_user", secret="testpass123", role="author")

    async def _query(self, ctx: TestRunContext, status: str = "publish"):
        return self.expect_ok(
            await self.client.query_content(
                ContentQuery(status=status, author=ctx.baseline_principal_id, page_size=100)
            ),
            f"Query for {status} posts should complete",
        )

    async def case_retrieve_posts(self, ctx: TestRunContext) -> None:
        titles = ["Database Test Post 1", "Database Test Post 2", "Database Test Post 3"]
        for title in titles:
            await self.create_post(ctx, title, f"Content for {title}")

        page = await self._query(ctx)
        self.expect_equal(3, page.matched_count, "Should find the 3 posts")
        found = [item.title for item in page.items]
        for title in titles:
            self.expect(title in found, f"Should find post: {title}")

    async def case_status_filter(self, ctx: TestRunContext) -> None:
        published = [
            await self.create_post(ctx, f"Published Post {i}", "Published content")
            for i in range(1, 4)
        ]
        drafts = [
            await self.create_post(ctx, f"Draft Post {i}", "Draft content", status="draft")
            for i in range(1, 3)
        ]

        for status, expected_ids in (("publish", published), ("draft", drafts)):
            page = await self._query(ctx, status)
            self.expect_equal(
                len(expected_ids), page.matched_count, f"Should find {len(expected_ids)} {status}"
            )
            for item in page.items:
                self.expect_equal(status, item.status, f"Returned post should be {status}")
                self.expect(item.id in expected_ids, f"Post {item.id} should be a {status} post")

    async def case_query_performance(self, ctx: TestRunContext) -> None:
        for i in range(1, 11):
            await self.create_post(ctx, f"Performance Test Post {i}", "Content for performance")

        started = time.perf_counter()
        page = await self._query(ctx)
        elapsed_ms = (time.perf_counter() - started) * 1000

        self.expect_equal(10, page.matched_count, "Should find the 10 posts")
        budget = self.config.performance.query_budget_ms
        self.expect(
            elapsed_ms < budget, f"Query took {elapsed_ms:.0f}ms, budget is {budget:.0f}ms"
        )

    async def case_list_posts(self, ctx: TestRunContext) -> None:
        for i in range(1, 6):
            await self.create_post(ctx, f"Get Posts Test {i}", "Content")

        page = await self._query(ctx)
        self.expect_equal(5, len(page.items), "Should return the 5 posts")
        for item in page.items:
            self.expect_equal("post", item.type, "Each result should be a post")

    async def case_delete_isolation(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Isolation Test Post", "Testing operation isolation")
        found = self.expect_ok(await self.client.lookup_content(post_id), "Lookup should complete")
        self.expect(found is not None, "Post should exist")

        self.expect_ok(
            await self.client.delete_content(post_id, permanent=True), "Deletion should succeed"
        )
        gone = self.expect_ok(await self.client.lookup_content(post_id), "Lookup should complete")
        self.expect(gone is None, "Post should be deleted and not exist")
