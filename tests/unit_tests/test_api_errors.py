"""Tests for the error taxonomy."""

import pytest

from lenses_cli.api.errors import (
    CredentialsMissingError,
    LensesError,
    RequiredFieldError,
    ResourceError,
    StreamProtocolError,
    UnknownResponseError,
)


@pytest.mark.parametrize(
    "body,expected",
    [
        ("Not found.", "not found"),
        ("Topic already exists!", "topic already exists"),
        ("NOT FOUND", "NOT FOUND"),
        ("X", "x"),
        ("", ""),
        ("A.", "A."),
        ("ok!", "ok"),
        ("4xx error.", "4xx error"),
    ],
)
def test_resource_error_message_normalization(body, expected):
    assert str(ResourceError(404, "http://h/api/x", "GET", body)) == expected


def test_resource_error_detail():
    error = ResourceError(409, "http://h/api/topics/a%20b", "POST", "Conflict")

    assert error.detail() == (
        "client: [POST: http://h/api/topics/a b] failed with status code [409]:\n[Conflict]"
    )


def test_resource_error_unescapes_uri():
    error = ResourceError(400, "http://h/api/sql/validation?sql=SELECT+%2A+FROM+t", "GET", "bad")

    assert error.uri == "http://h/api/sql/validation?sql=SELECT * FROM t"


def test_resource_error_code_and_dict():
    error = ResourceError(500, "http://h/api/license", "GET", "Internal error.")

    assert error.code == 500
    assert error.to_dict() == {
        "statusCode": 500,
        "method": "GET",
        "uri": "http://h/api/license",
        "message": "internal error",
    }


def test_error_hierarchy():
    for error_class in (
        CredentialsMissingError,
        UnknownResponseError,
        StreamProtocolError,
        ResourceError,
        RequiredFieldError,
    ):
        assert issubclass(error_class, LensesError)


def test_default_messages():
    assert str(CredentialsMissingError()) == "credentials missing or invalid"
    assert str(UnknownResponseError()) == "unknown"


def test_required_field_error():
    error = RequiredFieldError("topicName")

    assert str(error) == "client: [topicName] is required"
    assert error.field == "topicName"
    assert error.to_dict() == {"error": "client: [topicName] is required"}
