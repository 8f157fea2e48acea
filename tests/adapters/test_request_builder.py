from __future__ import annotations

import logging

import pytest
from pydantic import BaseModel

from adapters.request_builder import Rq
from core.domain.errors import InvalidHeader, InvalidPayload, InvalidUrl, UnsupportedMethod
from core.domain.models import HttpMethod, SensitiveHeader


@pytest.fixture()
def rq() -> Rq:
    return Rq.from_static("https://reqres.in")


def test_from_static_rejects_invalid_url() -> None:
    with pytest.raises(InvalidUrl):
        Rq.from_static("reqres.in")


def test_steps_return_new_builders(rq: Rq) -> None:
    configured = rq.uri("/api/users").method("POST").add_header("Accept", "application/json")

    assert configured is not rq
    assert rq.build().path == ""
    assert rq.build().method is HttpMethod.GET
    assert rq.build().headers == {}
    assert configured.build().path == "/api/users"
    assert configured.build().method is HttpMethod.POST


@pytest.mark.parametrize("name", ["GET", "POST", "PUT", "DELETE", "get", "delete"])
def test_method_accepts_supported_verbs(rq: Rq, name: str) -> None:
    assert rq.method(name).build().method.value == name.upper()


@pytest.mark.parametrize("name", ["PATCH", "HEAD", "TRACE", "CONNECT", "", "FETCH"])
def test_method_rejects_unsupported_verbs(rq: Rq, name: str) -> None:
    with pytest.raises(UnsupportedMethod):
        rq.method(name)


def test_header_last_write_wins_case_insensitive(rq: Rq) -> None:
    request = (
        rq.add_header("X-Token", "first")
        .add_header("Accept", "text/plain")
        .add_header("x-token", "second")
        .build()
    )

    assert len(request.headers) == 2
    assert request.header("X-TOKEN").value == "second"
    assert [name for name, _ in request.wire_headers()] == ["x-token", "Accept"]


def test_header_bytes_name_is_accepted(rq: Rq) -> None:
    request = rq.add_header(b"Content-Type", "application/json").build()

    assert request.header("content-type").value == "application/json"


@pytest.mark.parametrize("name", ["Bad Header", "bad:name", "", "ñame", b"\xff\xfe", "x\r\ny"])
def test_invalid_header_name_is_skipped_with_warning(rq: Rq, caplog: pytest.LogCaptureFixture, name) -> None:
    with caplog.at_level(logging.WARNING, logger="adapters.request_builder"):
        result = rq.add_header(name, "value").add_header("Accept", "*/*")

    assert list(result.build().headers) == ["accept"]
    assert "invalid name" in caplog.text


@pytest.mark.parametrize("value", ["line\r\nbreak", "nul\x00", "ñandú", "tab\x7f"])
def test_invalid_header_value_fails(rq: Rq, value: str) -> None:
    with pytest.raises(InvalidHeader):
        rq.add_header("X-Test", value)


def test_name_and_value_checked_independently(rq: Rq, caplog: pytest.LogCaptureFixture) -> None:
    # Nombre inválido + valor inválido: prevalece el "skip" del nombre.
    with caplog.at_level(logging.WARNING, logger="adapters.request_builder"):
        result = rq.add_header("bad name", "bad\nvalue")

    assert result.build().headers == {}


def test_secret_header_is_sensitive_and_masked(rq: Rq) -> None:
    built = rq.add_secret_header(b"x-api-key", "reqres-free-v1")

    header = built.build().header("X-API-KEY")
    assert isinstance(header, SensitiveHeader)
    assert header.value == "reqres-free-v1"
    assert built.describe()["headers"] == {"x-api-key": "***"}
    assert "reqres-free-v1" not in repr(built)


@pytest.mark.parametrize(("name", "value"), [("bad name", "ok"), ("X-Key", "bad\r\nvalue")])
def test_secret_header_invalid_name_or_value_fails(rq: Rq, name: str, value: str) -> None:
    with pytest.raises(InvalidHeader):
        rq.add_secret_header(name, value)


def test_secret_header_overrides_plain_header(rq: Rq) -> None:
    request = rq.add_header("Authorization", "visible").add_secret_header("authorization", "hidden").build()

    assert len(request.headers) == 1
    assert isinstance(request.header("Authorization"), SensitiveHeader)


def test_bearer_auth_trims_token(rq: Rq) -> None:
    request = rq.bearer_auth("  t0ken\n").build()

    assert request.header("authorization").value == "Bearer t0ken"
    assert isinstance(request.header("authorization"), SensitiveHeader)


def test_with_json_sets_accept_and_content_type(rq: Rq) -> None:
    request = rq.with_json().build()

    assert request.header("accept").value == "application/json"
    assert request.header("content-type").value == "application/json"


def test_add_params_replaces_previous_params(rq: Rq) -> None:
    request = rq.add_params([("page", "1"), ("per_page", 3)]).add_params([("page", "2")]).build()

    assert request.query_params == (("page", "2"),)


def test_load_payload_overwrites_and_unions(rq: Rq) -> None:
    request = rq.load_payload({"a": 1}).load_payload({"a": 2, "b": 3}).build()

    assert request.json_body == {"a": 2, "b": 3}


def test_load_payload_accepts_json_text_and_models(rq: Rq) -> None:
    class Body(BaseModel):
        model: str
        temperature: float | None = None

    request = rq.load_payload('{"stream": false}').load_payload(Body(model="m")).build()

    assert request.json_body == {"stream": False, "model": "m"}


@pytest.mark.parametrize("payload", [[1, 2], "[1, 2]", 5, "not json", None, {1: "int key"}, {"x": object()}])
def test_load_payload_rejects_non_objects(rq: Rq, payload) -> None:
    with pytest.raises(InvalidPayload):
        rq.load_payload(payload)


def test_add_json_field_overwrites(rq: Rq) -> None:
    request = rq.load_payload({"a": 1, "b": 2}).add_json_field("a", {"nested": True}).build()

    assert request.json_body == {"a": {"nested": True}, "b": 2}


def test_add_form_field_appends_in_order(rq: Rq) -> None:
    request = rq.add_form_field("a", "1").add_form_field("b", 2).add_form_field("a", "3").build()

    assert request.form_body == (("a", "1"), ("b", "2"), ("a", "3"))


def test_load_content_requires_bytes(rq: Rq) -> None:
    assert rq.load_content(bytearray(b"abc")).build().content == b"abc"
    with pytest.raises(InvalidPayload):
        rq.load_content("text")  # type: ignore[arg-type]


def test_apply_if_only_runs_with_value(rq: Rq) -> None:
    unchanged = rq.apply_if(None, Rq.bearer_auth)
    changed = rq.apply_if("token", Rq.bearer_auth)

    assert unchanged is rq
    assert changed.build().header("authorization").value == "Bearer token"


def test_apply_if_passes_falsy_values(rq: Rq) -> None:
    request = rq.apply_if(0, lambda b, v: b.add_json_field("seed", v)).build()

    assert request.json_body == {"seed": 0}


def test_describe_summarizes_request(rq: Rq) -> None:
    description = (
        rq.uri("/api/users")
        .method("GET")
        .add_secret_header("x-api-key", "secret")
        .add_header("Accept", "application/json")
        .add_params([("page", "2")])
        .describe()
    )

    assert description == {
        "method": "GET",
        "base_url": "https://reqres.in/",
        "path": "/api/users",
        "headers": {"x-api-key": "***", "Accept": "application/json"},
        "params": [("page", "2")],
        "body": "json",
    }


def test_built_descriptor_mutation_does_not_leak_into_siblings(rq: Rq) -> None:
    base = rq.add_header("Accept", "application/json").load_payload({"a": 1, "nested": {"n": 1}})
    sibling = base.uri("/x")

    built = sibling.build()
    built.json_body["a"] = 999
    built.json_body["nested"]["n"] = 2
    built.headers.clear()

    assert base.build().json_body == {"a": 1, "nested": {"n": 1}}
    assert sibling.build().json_body == {"a": 1, "nested": {"n": 1}}
    assert list(base.build().headers) == ["accept"]


def test_payload_is_copied_from_caller(rq: Rq) -> None:
    options = {"n": 1}
    items = [1, 2]
    built = rq.load_payload({"opts": options}).add_json_field("items", items)

    options["n"] = 2
    items.append(3)

    assert built.build().json_body == {"opts": {"n": 1}, "items": [1, 2]}


def test_secret_header_error_names_header_once(rq: Rq) -> None:
    with pytest.raises(InvalidHeader) as info:
        rq.add_secret_header(b"bad name", "value")

    assert info.value.name == "bad name"
    assert "Invalid header 'bad name'" in str(info.value)
