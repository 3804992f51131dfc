import copy
from datetime import datetime, timezone

import pytest

from src.snippet.filtering import (
    SnippetQuery,
    SortKey,
    apply_query,
    created_at_seconds,
    filter_snippets,
    matches_language,
    matches_search,
    matches_selected_languages,
    sort_snippets,
)
from src.snippet.model import Snippet


def _snippet(snippet_id, *, title="Untitled", language="Python", tags=(), seconds=0):
    return Snippet(
        id=snippet_id,
        title=title,
        code="print('hi')",
        language=language,
        tags=list(tags),
        created_at=datetime.fromtimestamp(seconds, tz=timezone.utc),
        user_id="user-1",
    )


def _ids(snippets):
    return [snippet["id"] if isinstance(snippet, dict) else snippet.id for snippet in snippets]


@pytest.fixture
def snippets():
    return [
        _snippet("a", title="Auth Helper", language="Python", tags=["backend"], seconds=100),
        _snippet("b", title="Sorting", language="java", tags=["auth", "algo"], seconds=300),
        _snippet("c", title="Flexbox", language="CSS", tags=["layout"], seconds=200),
        _snippet("d", title="Fetch wrapper", language="JavaScript", tags=["http"], seconds=250),
    ]


def test_no_active_filters_keeps_every_snippet_in_order(snippets):
    query = SnippetQuery()

    assert _ids(filter_snippets(snippets, query)) == ["a", "b", "c", "d"]
    assert _ids(apply_query(snippets, query)) == ["b", "d", "c", "a"]


def test_unknown_sort_key_preserves_input_order(snippets):
    result = apply_query(snippets, SnippetQuery(sort="relevance"))

    assert _ids(result) == ["a", "b", "c", "d"]
    assert result is not snippets


def test_language_filter_is_case_insensitive():
    snippets = [_snippet("py", language="Python"), _snippet("java", language="java")]

    result = filter_snippets(snippets, SnippetQuery(language="python"))

    assert _ids(result) == ["py"]


@pytest.mark.parametrize("value", ["All", "all", "ALL"])
def test_all_language_value_disables_language_filter(snippets, value):
    assert len(filter_snippets(snippets, SnippetQuery(language=value))) == len(snippets)


def test_selected_languages_use_exact_case_sensitive_match(snippets):
    query = SnippetQuery(selected_languages=("Python", "Java"))

    assert _ids(filter_snippets(snippets, query)) == ["a"]


def test_empty_selection_applies_only_language_filter(snippets):
    query = SnippetQuery(language="css", selected_languages=())

    assert _ids(filter_snippets(snippets, query)) == ["c"]


def test_language_filter_and_selection_combine_with_and(snippets):
    query = SnippetQuery(language="java", selected_languages=("Python",))

    assert filter_snippets(snippets, query) == []


def test_search_matches_title_and_tags_case_insensitively(snippets):
    result = filter_snippets(snippets, SnippetQuery(search="AUTH"))

    assert _ids(result) == ["a", "b"]


def test_search_matches_tag_substrings(snippets):
    assert _ids(filter_snippets(snippets, SnippetQuery(search="lay"))) == ["c"]


def test_search_without_matches_returns_empty_list(snippets):
    assert filter_snippets(snippets, SnippetQuery(search="kotlin")) == []


def test_sort_by_name_uses_locale_aware_order():
    snippets = [
        _snippet("z", title="Zebra"),
        _snippet("a", title="apple"),
        _snippet("m", title="Mango"),
    ]

    ascending = sort_snippets(snippets, "name")
    descending = sort_snippets(snippets, "name-desc")

    assert [snippet.title for snippet in ascending] == ["apple", "Mango", "Zebra"]
    assert [snippet.title for snippet in descending] == ["Zebra", "Mango", "apple"]


def test_sort_by_name_ignores_accents_at_first_level():
    snippets = [
        _snippet("1", title="Ostrich"),
        _snippet("2", title="Éclair"),
        _snippet("3", title="eagle"),
    ]

    assert [snippet.title for snippet in sort_snippets(snippets, SortKey.NAME)] == [
        "eagle",
        "Éclair",
        "Ostrich",
    ]


def test_sort_by_name_puts_lowercase_first_on_ties():
    snippets = [_snippet("upper", title="Apple"), _snippet("lower", title="apple")]

    assert _ids(sort_snippets(snippets, "name")) == ["lower", "upper"]


def test_sort_by_creation_time():
    snippets = [
        _snippet("first", seconds=100),
        _snippet("third", seconds=300),
        _snippet("second", seconds=200),
    ]

    newest = sort_snippets(snippets, "newest")
    oldest = sort_snippets(snippets, "oldest")

    assert [created_at_seconds(snippet) for snippet in newest] == [300, 200, 100]
    assert [created_at_seconds(snippet) for snippet in oldest] == [100, 200, 300]


def test_sort_is_stable_for_equal_keys():
    snippets = [
        _snippet("x", title="Same", seconds=50),
        _snippet("y", title="Same", seconds=50),
    ]

    assert _ids(sort_snippets(snippets, "newest")) == ["x", "y"]
    assert _ids(sort_snippets(snippets, "oldest")) == ["x", "y"]
    assert _ids(sort_snippets(snippets, "name-desc")) == ["x", "y"]


def test_timestamps_compare_at_second_resolution():
    snippets = [
        {"id": "early", "created_at": datetime(2024, 1, 1, 0, 0, 0, 100, tzinfo=timezone.utc)},
        {"id": "late", "created_at": datetime(2024, 1, 1, 0, 0, 0, 900, tzinfo=timezone.utc)},
    ]

    assert _ids(sort_snippets(snippets, "newest")) == ["early", "late"]


def test_inputs_are_not_mutated(snippets):
    documents = [
        {"id": "1", "title": "b", "language": "Go", "tags": ["x"], "createdAt": {"seconds": 1}},
        {"id": "2", "title": "a", "language": "go", "tags": ["y"], "createdAt": {"seconds": 2}},
    ]
    before = copy.deepcopy(documents)
    snapshot = list(snippets)

    apply_query(documents, SnippetQuery(language="go", search="", sort="name"))
    apply_query(snippets, SnippetQuery(sort="oldest"))

    assert documents == before
    assert snippets == snapshot


def test_raw_documents_with_store_timestamps_are_sorted():
    documents = [
        {"id": "old", "title": "Old", "createdAt": {"seconds": 10, "nanoseconds": 5}},
        {"id": "new", "title": "New", "createdAt": {"seconds": 20, "nanoseconds": 0}},
    ]

    assert _ids(apply_query(documents, SnippetQuery())) == ["new", "old"]


def test_malformed_entries_fail_predicates_without_raising():
    documents = [
        {"id": "empty"},
        {"id": "no-title", "language": None, "tags": None},
        {"id": "bad-tags", "title": 42, "tags": [1, None, "auth"], "createdAt": "not a date"},
        {"id": "ok", "title": "auth", "language": "Python", "createdAt": 5},
    ]

    assert _ids(filter_snippets(documents, SnippetQuery(search="auth"))) == ["bad-tags", "ok"]
    assert _ids(filter_snippets(documents, SnippetQuery(language="python"))) == ["ok"]
    assert _ids(filter_snippets(documents, SnippetQuery(selected_languages=("Python",)))) == ["ok"]
    assert _ids(sort_snippets(documents, "newest")) == ["ok", "empty", "no-title", "bad-tags"]
    assert _ids(sort_snippets(documents, "name")) == ["empty", "no-title", "bad-tags", "ok"]


@pytest.mark.parametrize("seconds", [float("inf"), float("-inf"), float("nan"), "inf", True])
def test_non_finite_store_timestamps_sort_as_zero(seconds):
    class StoreTimestamp:
        pass

    stamp = StoreTimestamp()
    stamp.seconds = seconds
    documents = [
        {"id": "a", "createdAt": {"seconds": seconds}},
        {"id": "b"},
        {"id": "c", "createdAt": stamp},
        {"id": "d", "createdAt": 7},
    ]

    assert _ids(sort_snippets(documents, "newest")) == ["d", "a", "b", "c"]
    assert created_at_seconds(documents[0]) == 0
    assert created_at_seconds(documents[2]) == 0


def test_predicates_accept_plain_objects():
    class Record:
        title = "Retry decorator"
        language = "Python"
        tags = ("resilience",)

    record = Record()

    assert matches_language(record, "PYTHON")
    assert matches_selected_languages(record, {"Python"})
    assert not matches_selected_languages(record, {"python"})
    assert matches_search(record, "resil")
    assert created_at_seconds(record) == 0


def test_query_state_transitions_return_new_objects():
    query = SnippetQuery()

    toggled = query.toggle_language("Python").toggle_language("Java")
    untoggled = toggled.toggle_language("Python")
    searched = untoggled.with_search("auth").with_language("Java").with_sort(SortKey.NAME)

    assert query.selected_languages == ()
    assert toggled.selected_languages == ("Python", "Java")
    assert untoggled.selected_languages == ("Java",)
    assert searched.search == "auth"
    assert searched.language == "Java"
    assert searched.sort == "name"
    assert query.with_selected_languages(["Go"]).selected_languages == ("Go",)


def test_query_state_is_frozen():
    query = SnippetQuery()

    with pytest.raises(AttributeError):
        query.search = "mutated"
