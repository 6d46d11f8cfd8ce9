"""Post CRUD through the content endpoints."""

from wpmonke.client.models import ContentFields
from wpmonke.core.context import TestRunContext
from wpmonke.core.lifecycle import BaselinePrincipal
from wpmonke.core.results import ErrorKind
from wpmonke.suites.base import BaseSuite


class PostSuite(BaseSuite):
    suite_name = "posts"
    description = "Create, update, trash and delete posts"
    baseline = BaselinePrincipal(prefix="test_author", secret="testpass123", role="author")

    async def _lookup(self, post_id: int, content_type: str = "post"):
        return self.expect_ok(
            await self.client.lookup_content(post_id, content_type), "Lookup should complete"
        )

    async def case_post_creation(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(
            ctx, "Test Post Title", "This is test post content.", status="publish"
        )
        self.expect(isinstance(post_id, int) and post_id > 0, "Post id should be a positive int")

        post = await self._lookup(post_id)
        self.expect(post is not None, "Post should exist")
        self.expect_equal("Test Post Title", post.title, "Post title should match")
        self.expect_equal("This is test post content.", post.content, "Post content should match")
        self.expect_equal("publish", post.status, "Post status should match")
        self.expect_equal(ctx.baseline_principal_id, post.author, "Post author should match")

    async def case_post_update(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Original Title", "Original content", status="draft")

        updated_id = self.expect_ok(
            await self.client.update_content(
                post_id,
                ContentFields(title="Updated Title", content="Updated content", status="publish"),
            ),
            "Post update should succeed",
        )
        self.expect_equal(post_id, updated_id, "Updated post id should match original")

        post = await self._lookup(post_id)
        self.expect_equal("Updated Title", post.title, "Post title should be updated")
        self.expect_equal("Updated content", post.content, "Post content should be updated")
        self.expect_equal("publish", post.status, "Post status should be updated")

    async def case_post_deletion(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Post to Delete", "This post will be deleted")
        self.expect(await self._lookup(post_id) is not None, "Post should exist before deletion")

        deleted = self.expect_ok(
            await self.client.delete_content(post_id, permanent=True), "Deletion should succeed"
        )
        self.expect(deleted is not None, "Deletion should return the removed post")
        self.expect(await self._lookup(post_id) is None, "Post should not exist after deletion")

    async def case_post_deletion_to_trash(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Post to Trash", "This post will be trashed")

        trashed = self.expect_ok(
            await self.client.delete_content(post_id, permanent=False), "Trash should succeed"
        )
        self.expect(trashed is not None, "Post should be moved to trash")
        self.expect_equal("trash", trashed.status, "Trashed post status")

        post = await self._lookup(post_id)
        self.expect(post is not None, "Trashed post should still resolve")
        self.expect_equal("trash", post.status, "Post status should be trash")

    async def case_get_post_by_id(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(ctx, "Get Post Test", "Content for get post test")

        post = await self._lookup(post_id)
        self.expect(post is not None, "Should return the post")
        self.expect_equal(post_id, post.id, "Post id should match")
        self.expect_equal("Get Post Test", post.title, "Post title should match")

    async def case_post_status_validation(self, ctx: TestRunContext) -> None:
        result = await self.lifecycle.create_content(
            ContentFields(
                title="Status Validation Test",
                content="Testing status validation.",
                status="invalid_status",
                author=ctx.baseline_principal_id,
            )
        )
        self.expect_err(result, ErrorKind.INVALID_PARAM, "Unknown status should be rejected")

    async def case_post_with_excerpt(self, ctx: TestRunContext) -> None:
        post_id = await self.create_post(
            ctx, "Post with Excerpt", "Full post content here.", excerpt="This is the excerpt."
        )
        post = await self._lookup(post_id)
        self.expect_equal("This is the excerpt.", post.excerpt, "Post excerpt should match")

    async def case_multiple_posts_creation(self, ctx: TestRunContext) -> None:
        created = []
        for i in range(1, 6):
            created.append(await self.create_post(ctx, f"Multiple Post {i}", f"Content {i}"))

        self.expect_equal(5, len(set(created)), "Should create 5 distinct posts")
        for post_id in created:
            self.expect(await self._lookup(post_id) is not None, f"Post {post_id} should exist")

    async def case_page_creation(self, ctx: TestRunContext) -> None:
        page_id = self.expect_ok(
            await self.lifecycle.create_content(
                ContentFields(
                    title="Test Page",
                    content="Page content",
                    status="publish",
                    author=ctx.baseline_principal_id,
                    type="page",
                )
            ),
            "Page should be created",
        )
        page = await self._lookup(page_id, "page")
        self.expect(page is not None, "Page should exist")
        self.expect_equal("page", page.type, "Content type should be page")
