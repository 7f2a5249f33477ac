from datetime import datetime, timezone

import pytest

from cyberspace.data_models import ZERO_TIME, Post
from cyberspace.decoder import (
    ABSENT,
    ArrayValue,
    DecodeError,
    Document,
    IntegerValue,
    MapValue,
    StringValue,
    decode_documents,
    decode_post,
    decode_reply,
    document_id,
    parse_integer,
    parse_timestamp,
    parse_value,
)

from .conftest import DOC_PREFIX, post_document



def test_document_id_is_last_path_segment():
    doc = Document.from_json({"name": f"{DOC_PREFIX}/posts/abc123"})
    assert decode_post(doc).id == "abc123"


def test_document_id_without_separator_is_whole_name():
    assert document_id("abc123") == "abc123"
    assert document_id("") == ""
    assert document_id("posts/") == ""


def test_decode_post_with_no_fields_yields_zero_values():
    post = decode_post(Document.from_json({"name": f"{DOC_PREFIX}/posts/xyz"}))
    assert post == Post(id="xyz")
    assert post.created_at == ZERO_TIME
    assert post.topics == ()
    assert post.deleted is False


def test_decode_post_reads_every_field():
    raw = post_document(
        "p1",
        authorId={"stringValue": "u1"},
        authorUsername={"stringValue": "neo"},
        content={"stringValue": "**hello** world"},
        createdAt={"timestampValue": "2024-01-15T10:30:00.123456789Z"},
        repliesCount={"integerValue": "3"},
        bookmarksCount={"integerValue": "12"},
        topics={"arrayValue": {"values": [{"stringValue": "go"}, {"stringValue": "tui"}]}},
        deleted={"booleanValue": True},
    )
    post = decode_post(Document.from_json(raw))
    assert post.id == "p1"
    assert post.author_id == "u1"
    assert post.author_username == "neo"
    assert post.content == "**hello** world"
    assert post.created_at == datetime(2024, 1, 15, 10, 30, 0, 123456, tzinfo=timezone.utc)
    assert post.replies_count == 3
    assert post.bookmarks_count == 12
    assert post.topics == ("go", "tui")
    assert post.deleted is True


def test_topics_keep_only_string_elements_in_order():
    raw = post_document(
        "p1",
        topics={"arrayValue": {"values": [
            {"stringValue": "a"},
            {"integerValue": "7"},
            {"stringValue": "b"},
            {"booleanValue": True},
            {"mapValue": {"fields": {}}},
            {"stringValue": "c"},
        ]}},
    )
    assert decode_post(Document.from_json(raw)).topics == ("a", "b", "c")


def test_empty_array_value_has_no_topics():
    raw = post_document("p1", topics={"arrayValue": {}})
    assert decode_post(Document.from_json(raw)).topics == ()


def test_mismatched_kinds_leave_defaults():
    raw = post_document(
        "p1",
        content={"integerValue": "5"},
        repliesCount={"stringValue": "5"},
        deleted={"stringValue": "true"},
        createdAt={"stringValue": "2024-01-15T10:30:00Z"},
        topics={"stringValue": "go"},
    )
    post = decode_post(Document.from_json(raw))
    assert post == Post(id="p1")


def test_bad_integer_yields_zero_for_that_field_only():
    raw = post_document(
        "p1",
        repliesCount={"integerValue": "12abc"},
        bookmarksCount={"integerValue": "4"},
    )
    post = decode_post(Document.from_json(raw))
    assert post.replies_count == 0
    assert post.bookmarks_count == 4


def test_parse_integer():
    assert parse_integer("42") == 42
    assert parse_integer("-3") == -3
    assert parse_integer("+7") == 7
    assert parse_integer("") == 0
    assert parse_integer(" 1") == 0
    assert parse_integer("1_000") == 0
    assert parse_integer("1.5") == 0


def test_parse_timestamp():
    assert parse_timestamp("2024-01-15T10:30:00Z") == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    offset = parse_timestamp("2024-01-15T12:30:00+02:00")
    assert offset == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-15T10:30:00.5Z").microsecond == 500000
    assert parse_timestamp("2024-01-15T10:30:00") == ZERO_TIME
    assert parse_timestamp("yesterday") == ZERO_TIME
    assert parse_timestamp("2024-13-45T10:30:00Z") == ZERO_TIME


def test_parse_value_closed_union():
    assert parse_value({"stringValue": "x"}) == StringValue("x")
    assert parse_value({"integerValue": "9"}) == IntegerValue("9")
    assert parse_value({"integerValue": 9}) == IntegerValue("9")
    assert parse_value({"nullValue": None}) == ABSENT
    assert parse_value({"doubleValue": 1.5}) == ABSENT
    assert parse_value({"stringValue": 3}) == ABSENT
    assert parse_value("not a value") == ABSENT
    nested = parse_value({"mapValue": {"fields": {"k": {"arrayValue": {"values": [{"stringValue": "v"}]}}}}})
    assert nested == MapValue({"k": ArrayValue((StringValue("v"),))})


def test_decode_reply():
    raw = {
        "name": f"{DOC_PREFIX}/replies/r9",
        "fields": {
            "postId": {"stringValue": "p1"},
            "authorUsername": {"stringValue": "trinity"},
            "content": {"stringValue": "agreed"},
            "deleted": {"booleanValue": False},
        },
    }
    reply = decode_reply(Document.from_json(raw))
    assert reply.id == "r9"
    assert reply.post_id == "p1"
    assert reply.author_username == "trinity"
    assert reply.content == "agreed"
    assert reply.author_id == ""
    assert reply.created_at == ZERO_TIME


def test_document_from_json_rejects_non_objects():
    with pytest.raises(DecodeError):
        Document.from_json(["not", "a", "document"])


def test_fields_that_are_not_an_object_are_ignored():
    doc = Document.from_json({"name": "posts/p1", "fields": "garbage"})
    assert decode_post(doc) == Post(id="p1")


def test_batch_decoding_skips_bad_entries():
    results = [
        {"document": post_document("a", content={"stringValue": "first"})},
        {"readTime": "2024-01-15T10:30:00Z"},
        {"document": "garbage"},
        {"document": post_document("b", content={"stringValue": "second"})},
    ]
    posts = decode_documents(results, decode_post)
    assert [p.id for p in posts] == ["a", "b"]
    assert [p.content for p in posts] == ["first", "second"]


def test_batch_decoding_of_empty_result():
    assert decode_documents([], decode_post) == []
