from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.domain.endpoint import EndpointIdentity
from core.domain.errors import InvalidUrl


def test_parse_normalizes_missing_path() -> None:
    endpoint = EndpointIdentity.parse("http://localhost:3000")

    assert endpoint.base_url == "http://localhost:3000/"
    assert str(endpoint) == "http://localhost:3000/"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "not a url",
        "localhost:3000",
        "ftp://example.com",
        "http://",
        "http://example.com:99999",
        "https://exa mple.com",
    ],
)
def test_parse_rejects_invalid_urls(url: str) -> None:
    with pytest.raises(InvalidUrl):
        EndpointIdentity.parse(url)


def test_resolve_joins_absolute_path() -> None:
    endpoint = EndpointIdentity.parse("https://reqres.in")

    assert endpoint.resolve("/api/users") == "https://reqres.in/api/users"
    assert endpoint.resolve("") == "https://reqres.in/"


def test_resolve_relative_path_against_base_path() -> None:
    endpoint = EndpointIdentity.parse("https://host.example/v1/")

    assert endpoint.resolve("items") == "https://host.example/v1/items"


def test_resolve_rejects_broken_result() -> None:
    endpoint = EndpointIdentity.parse("https://reqres.in")

    with pytest.raises(InvalidUrl):
        endpoint.resolve("http://[::1")
    with pytest.raises(InvalidUrl):
        endpoint.resolve("/with\r\nbreak")
    with pytest.raises(InvalidUrl):
        endpoint.resolve("/nul\x00")


def test_resolve_keeps_spaces_in_path() -> None:
    endpoint = EndpointIdentity.parse("https://example.com")

    assert endpoint.resolve("/a b") == "https://example.com/a b"
    assert endpoint.resolve("/search?q=a b") == "https://example.com/search?q=a b"


def test_resolve_rejects_space_in_host() -> None:
    endpoint = EndpointIdentity.parse("https://example.com")

    with pytest.raises(InvalidUrl):
        endpoint.resolve("//exa mple.com/x")


def test_endpoint_is_immutable() -> None:
    endpoint = EndpointIdentity.parse("https://reqres.in")

    with pytest.raises(ValidationError):
        endpoint.base_url = "https://other.example"  # type: ignore[misc]
