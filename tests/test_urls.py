import pytest

from auth.urls import append_query_params, callbacks_match, is_absolute_uri, parse_callback


@pytest.mark.parametrize(
    "uri",
    [
        "https://app.example/cb",
        "http://localhost:6274/callback",
        "https://app.example:8443/cb?x=1",
        "http://[::1]:8080/",
        "myapp://callback",
    ],
)
def test_absolute_uris(uri: str) -> None:
    assert is_absolute_uri(uri) is True


@pytest.mark.parametrize(
    "uri",
    [
        None,
        "",
        "/cb",
        "cb",
        "app.example/cb",
        "//app.example/cb",
        "mailto:someone@app.example",
        "https:///cb",
        "https://app.example:notaport/cb",
        "https://app.example:99999/cb",
        "https://[::1/cb",
        "https://app.example/c b",
        "https://app.example/cb\n",
        "https://app.ex\tample/cb",
        " https://app.example/cb",
    ],
)
def test_non_absolute_uris(uri) -> None:
    assert is_absolute_uri(uri) is False


def test_parse_makes_default_port_explicit() -> None:
    parts = parse_callback("HTTPS://App.Example/cb")

    assert parts.scheme == "https"
    assert parts.host == "app.example"
    assert parts.port == 443
    assert parts.path == "/cb"


def test_parse_empty_path_is_root() -> None:
    assert parse_callback("https://app.example").path == "/"


def test_parse_keeps_userinfo() -> None:
    assert parse_callback("https://user@app.example/cb").userinfo == "user"


def test_explicit_default_port_matches_implicit() -> None:
    assert callbacks_match(
        parse_callback("https://app.example:443/cb"),
        parse_callback("https://app.example/cb"),
    )


def test_different_port_does_not_match() -> None:
    assert not callbacks_match(
        parse_callback("https://app.example:8443/cb"),
        parse_callback("https://app.example/cb"),
    )


def test_path_case_is_significant() -> None:
    assert not callbacks_match(
        parse_callback("https://app.example/CB"),
        parse_callback("https://app.example/cb"),
    )


def test_query_must_match_exactly() -> None:
    assert not callbacks_match(
        parse_callback("https://app.example/cb?b=2&a=1"),
        parse_callback("https://app.example/cb?a=1&b=2"),
    )


def test_loopback_port_ignored_only_when_enabled() -> None:
    requested = parse_callback("http://127.0.0.1:60847/callback")
    registered = parse_callback("http://127.0.0.1:5000/callback")

    assert not callbacks_match(requested, registered)
    assert callbacks_match(requested, registered, loopback_any_port=True)


def test_loopback_relaxation_keeps_path_strict() -> None:
    assert not callbacks_match(
        parse_callback("http://localhost:9999/other"),
        parse_callback("http://localhost:8080/callback"),
        loopback_any_port=True,
    )


def test_loopback_relaxation_does_not_apply_to_https_hosts() -> None:
    assert not callbacks_match(
        parse_callback("https://app.example:9999/cb"),
        parse_callback("https://app.example/cb"),
        loopback_any_port=True,
    )


def test_append_query_params_keeps_existing() -> None:
    url = append_query_params("https://app.example/cb?keep=1", {"error": "invalid_request"})

    assert url == "https://app.example/cb?keep=1&error=invalid_request"


@pytest.mark.parametrize(
    "requested",
    ["https://app.example/cb?", "https://app.example/cb#", "https://@app.example/cb"],
)
def test_empty_delimiters_do_not_match_bare_uri(requested: str) -> None:
    assert not callbacks_match(parse_callback(requested), parse_callback("https://app.example/cb"))
