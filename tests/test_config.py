"""Tests for the config module."""

import pytest

from agenterra.config import Config, GenerationOptions
from agenterra.errors import ConfigurationError, ParseError, SpecLoadError


class TestConfig:
    """Test Config validation and YAML persistence."""

    def test_defaults(self):
        config = Config(project_name="p", openapi_schema_path="s.json", output_dir="out")
        assert config.template_kind == "rust_axum"
        assert config.include_all is False
        assert config.include_operations == []
        assert config.base_url is None

    @pytest.mark.parametrize("url", ["api.example.com", "/v1", "ftp://example.com"])
    def test_invalid_base_url(self, url):
        with pytest.raises(ConfigurationError, match="Invalid base URL"):
            Config(project_name="p", openapi_schema_path="s", output_dir="o", base_url=url)

    def test_save_and_load(self, tmp_path):
        config = Config(
            project_name="petstore",
            openapi_schema_path="openapi.yaml",
            output_dir="out",
            include_operations=["listPets"],
            base_url="https://petstore.example.com",
        )
        path = tmp_path / "agenterra.yaml"
        config.save(path)
        assert Config.from_file(path) == config

    def test_unknown_keys_ignored(self):
        config = Config.from_dict({
            "project_name": "p", "openapi_schema_path": "s", "output_dir": "o", "colour": "blue",
        })
        assert config.project_name == "p"

    def test_missing_required_key(self):
        with pytest.raises(ParseError, match="Invalid configuration"):
            Config.from_dict({"project_name": "p"})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("- a\n")
        with pytest.raises(ParseError, match="must be a mapping"):
            Config.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SpecLoadError):
            Config.from_file(tmp_path / "missing.yaml")


class TestGenerationOptions:
    """Test operation include/exclude filtering."""

    def test_defaults_include_everything(self):
        options = GenerationOptions()
        assert options.overwrite is True
        assert options.includes("anything")

    def test_include_list_restricts(self):
        options = GenerationOptions(include_operations=["listPets"])
        assert options.includes("listPets")
        assert not options.includes("createPet")

    def test_all_operations_short_circuits_include_list(self):
        options = GenerationOptions(all_operations=True, include_operations=["listPets"])
        assert options.includes("createPet")

    def test_exclude_always_applies(self):
        options = GenerationOptions(all_operations=True, exclude_operations=["createPet"])
        assert not options.includes("createPet")
        options = GenerationOptions(include_operations=["createPet"], exclude_operations=["createPet"])
        assert not options.includes("createPet")
