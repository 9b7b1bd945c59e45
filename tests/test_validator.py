"""
Snippetbox: Validator and Form Decoding Tests
=============================================

What we test:
    ✅ Validator predicates, including multi-byte input
    ✅ Error accumulation and valid()
    ✅ decode_post_form: int conversion, blank values, DecodeError, ProgrammerError
    ✅ human_date formatting
"""

from datetime import datetime

import pytest
from starlette.requests import Request

from snippetbox.exceptions import DecodeError, ProgrammerError
from snippetbox.schemas.forms import SnippetCreateForm, UserLoginForm, decode_post_form
from snippetbox.templating import human_date
from snippetbox.validator import (
    EMAIL_RX,
    Validator,
    matches,
    max_bytes,
    max_chars,
    min_chars,
    not_blank,
    permitted_value,
)


def make_form_request(body: bytes) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "query_string": b"",
        "headers": [(b"content-type", b"application/x-www-form-urlencoded")],
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


class TestPredicates:

    def test_not_blank(self):
        assert not_blank("hello")
        assert not not_blank("")
        assert not not_blank("   \t\n")

    def test_max_chars_counts_characters_not_bytes(self):
        assert max_chars("é" * 100, 100)
        assert not max_chars("a" * 101, 100)

    def test_min_chars(self):
        assert min_chars("12345678", 8)
        assert not min_chars("1234567", 8)

    def test_max_bytes(self):
        assert max_bytes("a" * 72, 72)
        # 37 two-byte characters = 74 bytes
        assert not max_bytes("é" * 37, 72)

    def test_permitted_value(self):
        assert permitted_value(7, 1, 7, 365)
        assert not permitted_value(2, 1, 7, 365)

    @pytest.mark.parametrize(
        "email,ok",
        [
            ("alice@example.com", True),
            ("a.b+c@sub.example.co.uk", True),
            ("alice@", False),
            ("@example.com", False),
            ("alice example.com", False),
            ("", False),
        ],
    )
    def test_email_regex(self, email, ok):
        assert matches(email, EMAIL_RX) is ok


class TestValidator:

    def test_valid_when_empty(self):
        assert Validator().valid()

    def test_check_field_records_only_failures(self):
        v = Validator()
        v.check_field(True, "title", "never shown")
        v.check_field(False, "title", "This field cannot be blank")
        assert v.field_errors == {"title": ["This field cannot be blank"]}
        assert not v.valid()

    def test_non_field_errors_make_invalid(self):
        v = Validator()
        v.add_non_field_error("Email or password is incorrect")
        assert not v.valid()


class TestDecodePostForm:

    @pytest.mark.asyncio
    async def test_decodes_and_converts(self):
        request = make_form_request(b"title=Hi&content=There&expires=7&csrf_token=abc")
        form = await decode_post_form(request, SnippetCreateForm)
        assert form.title == "Hi"
        assert form.content == "There"
        assert form.expires == 7
        assert form.valid()

    @pytest.mark.asyncio
    async def test_blank_value_falls_back_to_default(self):
        request = make_form_request(b"title=&content=&expires=")
        form = await decode_post_form(request, SnippetCreateForm)
        assert form.expires == 0
        assert form.title == ""

    @pytest.mark.asyncio
    async def test_unconvertible_value_raises_decode_error(self):
        request = make_form_request(b"title=x&content=y&expires=abc")
        with pytest.raises(DecodeError) as exc_info:
            await decode_post_form(request, SnippetCreateForm)
        assert exc_info.value.context["fields"] == ["expires"]

    @pytest.mark.asyncio
    async def test_non_form_destination_raises_programmer_error(self):
        request = make_form_request(b"email=a@b.com")
        with pytest.raises(ProgrammerError):
            await decode_post_form(request, dict)

    @pytest.mark.asyncio
    async def test_forms_do_not_share_errors(self):
        first = await decode_post_form(make_form_request(b"email=x"), UserLoginForm)
        first.add_field_error("email", "bad")
        second = await decode_post_form(make_form_request(b"email=x"), UserLoginForm)
        assert second.valid()


class TestHumanDate:

    def test_format(self):
        assert human_date(datetime(2024, 3, 17, 10, 15)) == "17 Mar 2024 at 10:15"

    def test_none_is_empty(self):
        assert human_date(None) == ""
