"""Post repository: query parsing, search matching, owner projection, conditional writes."""

import pytest

from src.apps.posts.repositories.post_repository import parse_search_query
from src.apps.posts.schemas.post import OwnerProjection


class TestParseSearchQuery:

    def test_plain_terms(self):
        parsed = parse_search_query("coffee  tea")
        assert parsed.terms == ["coffee", "tea"]
        assert parsed.phrases == []
        assert parsed.excluded == []

    def test_phrases_and_exclusions(self):
        parsed = parse_search_query('"green tea" coffee -decaf -"instant coffee"')
        assert parsed.terms == ["coffee"]
        assert parsed.phrases == ["green tea"]
        assert parsed.excluded == ["decaf", "instant coffee"]

    @pytest.mark.parametrize("query", [None, "", "  ", '""', "-", "-x"])
    def test_nothing_to_match(self, query):
        assert parse_search_query(query).is_empty


class TestTextSearch:

    @pytest.fixture
    async def posts(self, post_repository, alice):
        contents = [
            "Morning coffee with friends",
            "Green tea is better than coffee",
            "Instant coffee is fine",
            "100% pure_juice",
        ]
        return [await post_repository.insert(owner_id=alice.id, content=c) for c in contents]

    async def _contents(self, repo, query):
        return sorted(p.content for p in await repo.text_search(query))

    async def test_any_term_matches_case_insensitively(self, post_repository, posts):
        assert await self._contents(post_repository, "MORNING tea") == [
            "Green tea is better than coffee",
            "Morning coffee with friends",
        ]

    async def test_phrase_must_be_present(self, post_repository, posts):
        assert await self._contents(post_repository, 'coffee "is fine"') == [
            "Instant coffee is fine",
        ]

    async def test_excluded_terms_filter_results(self, post_repository, posts):
        assert await self._contents(post_repository, "coffee -instant -tea") == [
            "Morning coffee with friends",
        ]

    async def test_like_wildcards_are_literal(self, post_repository, posts):
        assert await self._contents(post_repository, "100%") == ["100% pure_juice"]
        assert await self._contents(post_repository, "1_0") == []
        assert await self._contents(post_repository, "pure") == []

    async def test_partial_words_do_not_match(self, post_repository, alice):
        for content in ("goodbye everyone", "the cathedral"):
            await post_repository.insert(owner_id=alice.id, content=content)

        assert await self._contents(post_repository, "bye") == []
        assert await self._contents(post_repository, "cat") == []
        assert await self._contents(post_repository, "Goodbye") == ["goodbye everyone"]

    async def test_excluding_a_partial_word_keeps_the_post(self, post_repository, posts):
        assert await self._contents(post_repository, "coffee -inst -coff") == [
            "Green tea is better than coffee",
            "Instant coffee is fine",
            "Morning coffee with friends",
        ]

    async def test_phrase_words_may_span_line_breaks(self, post_repository, alice):
        await post_repository.insert(owner_id=alice.id, content="green\ntea daily")

        assert await self._contents(post_repository, '"green tea"') == ["green\ntea daily"]

    async def test_results_are_newest_first(self, post_repository, posts):
        results = await post_repository.text_search("coffee")
        assert [p.id for p in results] == sorted((p.id for p in results), reverse=True)


class TestReads:

    async def test_find_all_skip_and_limit(self, post_repository, alice):
        for i in range(5):
            await post_repository.insert(owner_id=alice.id, content=f"n{i}")

        window = await post_repository.find_all(skip=1, limit=2)

        assert [p.content for p in window] == ["n3", "n2"]

    async def test_find_by_id_owner_projection(self, post_repository, alice):
        post = await post_repository.insert(owner_id=alice.id, content="x")

        full = await post_repository.find_by_id(post.id)
        name_only = await post_repository.find_by_id(
            post.id, with_owner_projection=OwnerProjection.USERNAME
        )

        assert (full.owner.id, full.owner.username) == (alice.id, "alice")
        assert (name_only.owner.id, name_only.owner.username) == (None, "alice")

    async def test_find_by_id_missing(self, post_repository):
        assert await post_repository.find_by_id(42) is None

    async def test_approximate_count_on_sqlite_counts_rows(self, post_repository, alice):
        assert await post_repository.approximate_count() == 0
        await post_repository.insert(owner_id=alice.id, content="x")
        assert await post_repository.approximate_count() == 1


class TestConditionalWrites:

    async def test_update_requires_matching_owner(self, post_repository, alice, bob):
        post = await post_repository.insert(owner_id=alice.id, content="before")

        assert await post_repository.update_by_id_and_owner(post.id, bob.id, {"content": "x"}) is None
        updated = await post_repository.update_by_id_and_owner(
            post.id, alice.id, {"content": "after"}
        )

        assert updated.content == "after"
        assert updated.updated_at > post.updated_at
        assert updated.created_at == post.created_at

    async def test_update_ignores_immutable_fields(self, post_repository, alice, bob):
        post = await post_repository.insert(owner_id=alice.id, content="c")

        updated = await post_repository.update_by_id_and_owner(
            post.id, alice.id, {"content": "d", "owner_id": bob.id, "id": 99}
        )

        assert updated.id == post.id
        assert updated.owner.id == alice.id

    async def test_commit_callbacks_run_only_for_matched_rows(
        self, post_repository, alice, bob
    ):
        seen = []
        post = await post_repository.insert(
            owner_id=alice.id, content="c", on_commit=lambda p: seen.append(("insert", p.id))
        )

        await post_repository.update_by_id_and_owner(
            post.id, bob.id, {"content": "x"}, on_commit=lambda p: seen.append(("update", p.id))
        )
        await post_repository.update_by_id_and_owner(
            post.id, alice.id, {"content": "d"},
            on_commit=lambda p: seen.append(("update", p.content)),
        )
        await post_repository.delete_by_id_and_owner(
            post.id, bob.id, on_commit=lambda: seen.append(("delete", "bob"))
        )
        await post_repository.delete_by_id_and_owner(
            post.id, alice.id, on_commit=lambda: seen.append(("delete", "alice"))
        )

        assert seen == [
            ("insert", post.id),
            ("update", "d"),
            ("delete", "alice"),
        ]

    async def test_delete_requires_matching_owner(self, post_repository, alice, bob):
        post = await post_repository.insert(owner_id=alice.id, content="c")

        assert await post_repository.delete_by_id_and_owner(post.id, bob.id) is False
        assert await post_repository.delete_by_id_and_owner(post.id, alice.id) is True
        assert await post_repository.find_by_id(post.id) is None
