"""Tests for post queries: search, sort, upvote annotation."""
from datetime import datetime, timedelta, timezone

import pytest

from errors import ConflictError
from models import Post
from tests.conftest import ALICE, BOB

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _post(store, title, content="body", author="Anonymous", votes=0, minutes=0):
    when = T0 + timedelta(minutes=minutes)
    return store.insert(
        Post(title=title, content=content, author=author, votes=votes, created_at=when, updated_at=when)
    )


def test_find_sorts_by_date_newest_first(store):
    _post(store, "old", minutes=0)
    _post(store, "new", minutes=5)
    _post(store, "middle", minutes=2)
    assert [p.title for p in store.find(sort="date")] == ["new", "middle", "old"]


def test_find_sorts_by_votes_then_date(store):
    _post(store, "low", votes=1, minutes=9)
    _post(store, "high-old", votes=5, minutes=0)
    _post(store, "high-new", votes=5, minutes=3)
    assert [p.title for p in store.find(sort="votes")] == ["high-new", "high-old", "low"]


def test_unknown_sort_falls_back_to_date(store):
    _post(store, "a", minutes=0)
    _post(store, "b", minutes=1)
    assert [p.title for p in store.find(sort="bogus")] == ["b", "a"]


def test_search_matches_title_content_or_author_case_insensitively(store):
    _post(store, "Decorators in Python", minutes=0)
    _post(store, "Closures", content="A PYTHON closure captures", minutes=1)
    _post(store, "Rust lifetimes", author="pythonista", minutes=2)
    _post(store, "Go channels", minutes=3)
    titles = [p.title for p in store.find(search="python")]
    assert titles == ["Rust lifetimes", "Closures", "Decorators in Python"]


def test_search_treats_wildcards_literally(store):
    _post(store, "100% coverage")
    _post(store, "plain")
    assert [p.title for p in store.find(search="%")] == ["100% coverage"]


def test_has_upvoted_annotation(store):
    post = _post(store, "q")
    store.add_voter(post, ALICE.id)
    store.increment_votes(post)

    assert store.find_by_id(post.id, ALICE).has_upvoted is True
    assert store.find_by_id(post.id, BOB).has_upvoted is False
    assert store.find_by_id(post.id, None).has_upvoted is False
    assert [p.has_upvoted for p in store.find(identity=ALICE)] == [True]


def test_find_by_id_with_bad_id(store):
    assert store.find_by_id("not-a-number") is None
    assert store.find_by_id(999) is None


def test_find_by_id_out_of_integer_range(store):
    _post(store, "q")
    assert store.find_by_id("99999999999999999999") is None
    assert store.find_by_id(-(2 ** 64)) is None
    assert store.recent(exclude_id="99999999999999999999") != []


def test_duplicate_voter_is_conflict(store):
    post = _post(store, "q")
    store.add_voter(post, ALICE.id)
    store.increment_votes(post)
    with pytest.raises(ConflictError):
        store.add_voter(post, ALICE.id)


def test_increment_votes_accumulates(store):
    post = _post(store, "q")
    store.increment_votes(post)
    store.increment_votes(post)
    assert store.find_by_id(post.id).votes == 2


def test_keyword_matches_excludes_source_and_ranks(store):
    source = _post(store, "python decorators", minutes=0)
    _post(store, "decorators explained", votes=1, minutes=1)
    _post(store, "unrelated", content="all about decorators", votes=3, minutes=2)
    _post(store, "cooking", minutes=3)
    matches = store.keyword_matches(["decorators"], exclude_id=source.id)
    assert [p.title for p in matches] == ["unrelated", "decorators explained"]
    assert store.keyword_matches([]) == []


def test_recent_limits_and_excludes(store):
    posts = [_post(store, f"p{i}", minutes=i) for i in range(4)]
    recent = store.recent(exclude_id=posts[3].id, limit=2)
    assert [p.title for p in recent] == ["p2", "p1"]
