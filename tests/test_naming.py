"""Tests for the naming module."""

import pytest

from agenterra.naming import (
    default_operation_id,
    sanitize_endpoint_name,
    sanitize_filename,
    to_lower_camel_case,
    to_snake_case,
    to_upper_camel_case,
)


class TestToSnakeCase:
    """Test identifier conversion to snake_case."""

    def test_camel_case(self):
        assert to_snake_case("findPetsByStatus") == "find_pets_by_status"

    def test_pascal_case(self):
        assert to_snake_case("ListPets") == "list_pets"

    def test_kebab_case(self):
        assert to_snake_case("list-all-pets") == "list_all_pets"

    def test_spaces(self):
        assert to_snake_case("Pet Store") == "pet_store"

    def test_acronym_run_stays_joined(self):
        """Consecutive capitals are not split from each other."""
        assert to_snake_case("HTTPResponse") == "httpresponse"

    def test_acronym_after_separator(self):
        assert to_snake_case("get HTTP Response") == "get_http_response"

    def test_collapses_and_strips_separators(self):
        assert to_snake_case("  hello__World  ") == "hello_world"

    def test_drops_punctuation(self):
        assert to_snake_case("pets/{petId}") == "petspet_id"

    def test_drops_non_ascii(self):
        assert to_snake_case("café") == "caf"

    def test_digit_before_capital(self):
        assert to_snake_case("V2Api") == "v2api"

    def test_empty(self):
        assert to_snake_case("") == ""

    @pytest.mark.parametrize("value", ["findPetsByStatus", "Pet Store", "list-all-pets", "HTTPResponse"])
    def test_idempotent(self, value):
        once = to_snake_case(value)
        assert to_snake_case(once) == once


class TestCamelCase:
    """Test UpperCamelCase and lowerCamelCase conversion."""

    def test_upper_from_snake(self):
        assert to_upper_camel_case("find_pets_by_status") == "FindPetsByStatus"

    def test_upper_from_camel(self):
        assert to_upper_camel_case("listPets") == "ListPets"

    def test_upper_type_name(self):
        assert to_upper_camel_case("listPets_params") == "ListPetsParams"

    def test_lower_from_kebab(self):
        assert to_lower_camel_case("find-pets-by-status") == "findPetsByStatus"

    def test_lower_from_pascal(self):
        assert to_lower_camel_case("ListPets") == "listPets"

    def test_empty(self):
        assert to_upper_camel_case("") == ""
        assert to_lower_camel_case("") == ""

    def test_upper_round_trips_through_snake(self):
        assert to_snake_case(to_upper_camel_case("find_pets_by_status")) == "find_pets_by_status"


class TestDefaultOperationId:
    """Operation IDs for operations that declare none."""

    def test_path_parameter(self):
        assert default_operation_id("GET", "/pet/{petId}") == "get_pet_petId"

    def test_nested_path(self):
        assert default_operation_id("post", "/store/order") == "post_store_order"

    def test_root(self):
        assert default_operation_id("get", "/") == "get_"


class TestSanitizers:
    """Test filename and endpoint sanitizers."""

    def test_filename(self):
        assert sanitize_filename("a-b.c d") == "a_b_c_d"

    def test_filename_keeps_underscores(self):
        assert sanitize_filename("list_pets") == "list_pets"

    def test_endpoint_from_path(self):
        assert sanitize_endpoint_name("/pets/{id}") == "_pets_id"

    def test_endpoint_dashes(self):
        assert sanitize_endpoint_name("v1-users") == "v1_users"

    def test_endpoint_leading_digit(self):
        assert sanitize_endpoint_name("123abc") == "m_123abc"

    def test_endpoint_empty(self):
        assert sanitize_endpoint_name("") == "root"

    def test_endpoint_is_identifier(self):
        assert sanitize_endpoint_name("users/{user-id}/items.json").isidentifier()
