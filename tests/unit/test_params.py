"""Tests for key=value parameter parsing."""

import pytest

from ustripe.exceptions import MissingParameterError
from ustripe.params import canonical_key, marked_params, parse_params


class TestParseParams:
    """Tests for parse_params."""

    @pytest.mark.parametrize(
        "alias,key",
        [
            ("e", "email"),
            ("p", "password"),
            ("pass", "password"),
            ("l", "language"),
            ("lang", "language"),
            ("us", "url_success"),
            ("uc", "url_cancel"),
            ("c", "customer"),
            ("t", "tax_rate"),
            ("r", "reference"),
            ("v", "verified"),
        ],
    )
    def test_alias_resolves_to_canonical_key(self, alias, key):
        params, positional = parse_params([f"{alias}=value"])
        assert params == {key: "value"}
        assert positional == []

    def test_unaliased_key_passes_through(self):
        params, _ = parse_params(["city=Bilbao", "@origin=web", "email=a@b.com"])
        assert params == {"city": "Bilbao", "@origin": "web", "email": "a@b.com"}

    def test_tokens_without_equals_are_positional(self):
        params, positional = parse_params(["prod_a", "e=a@b.com", "prod_b"])
        assert params == {"email": "a@b.com"}
        assert positional == ["prod_a", "prod_b"]

    def test_value_keeps_further_equals_signs(self):
        params, _ = parse_params(["us=https://shop.example.com/ok?x=1"])
        assert params["url_success"] == "https://shop.example.com/ok?x=1"

    def test_empty_value_counts_as_present(self):
        params, _ = parse_params(["description="], "description")
        assert params == {"description": ""}

    def test_later_token_wins(self):
        params, _ = parse_params(["e=first@example.com", "email=second@example.com"])
        assert params["email"] == "second@example.com"

    def test_required_present(self):
        params, _ = parse_params(["e=a@b.com", "p=secret"], "email", "password")
        assert params == {"email": "a@b.com", "password": "secret"}

    def test_missing_required_lists_exactly_the_missing_names(self):
        with pytest.raises(MissingParameterError) as excinfo:
            parse_params(["l=es", "positional"], "email", "language", "password")

        assert excinfo.value.missing == ["email", "password"]
        assert excinfo.value.message == "missing parameters: email password"

    def test_canonical_key(self):
        assert canonical_key("e") == "email"
        assert canonical_key("zipcode") == "zipcode"


class TestMarkedParams:
    """Tests for @key parameters."""

    def test_strips_marker(self):
        params = {"@origin": "web", "@prod_1": "2,txr", "email": "a@b.com"}
        assert marked_params(params) == {"origin": "web", "prod_1": "2,txr"}

    def test_bare_marker_is_ignored(self):
        assert marked_params({"@": "x"}) == {}
