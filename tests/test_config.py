from pathlib import Path

import pytest

from tyx import Activation, ConfigError, ContainerConfig, load_config, parse_config


class TestParseConfig:
    """Test validation of plain configuration mappings."""

    def test_defaults(self) -> None:
        config = parse_config({})
        assert config == ContainerConfig()
        assert config.activation is Activation.LAZY
        assert dict(config.resources) == {}
        assert config.preload == ()

    def test_full(self) -> None:
        config = parse_config(
            {
                "activation": "Eager",
                "resources": {"Configuration": {"name": "demo"}},
                "preload": ["GreeterImpl"],
            }
        )
        assert config.activation is Activation.EAGER
        assert config.resources["Configuration"] == {"name": "demo"}
        assert config.preload == ("GreeterImpl",)

    def test_resources_are_read_only(self) -> None:
        config = parse_config({"resources": {"a": 1}})
        with pytest.raises(TypeError):
            config.resources["b"] = 2  # type: ignore[index]

    @pytest.mark.parametrize(
        ("data", "message"),
        [
            ({"unknown": 1}, "Unknown configuration keys: unknown"),
            ({"activation": 1}, "activation must be a string"),
            ({"activation": "sometimes"}, "Unknown activation"),
            ({"resources": []}, "resources must be a mapping"),
            ({"resources": {1: "x"}}, "Resource token must be a string"),
            ({"preload": "GreeterImpl"}, "preload must be a list of strings"),
            ({"preload": [1]}, "preload must be a list of strings"),
        ],
    )
    def test_invalid(self, data: dict, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            parse_config(data)

    def test_config_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_config({"activation": "sometimes"})


class TestLoadConfig:
    """Test loading configuration files by extension."""

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "container.yaml"
        path.write_text(
            "activation: eager\n"
            "resources:\n"
            "  database: sqlite://\n"
            "preload:\n"
            "  - Repository\n"
        )
        config = load_config(path)
        assert config.activation is Activation.EAGER
        assert config.resources["database"] == "sqlite://"
        assert config.preload == ("Repository",)

    def test_yml_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "container.yml"
        path.write_text("activation: lazy\n")
        assert load_config(path).activation is Activation.LAZY

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "container.json"
        path.write_text('{"resources": {"port": 8080}}')
        assert load_config(path).resources["port"] == 8080

    def test_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "container.toml"
        path.write_text('activation = "eager"\n\n[resources]\nregion = "eu-west-1"\n')
        config = load_config(path)
        assert config.activation is Activation.EAGER
        assert config.resources["region"] == "eu-west-1"

    def test_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "container.yaml"
        path.write_text("")
        assert load_config(path) == ContainerConfig()

    def test_non_mapping_document(self, tmp_path: Path) -> None:
        path = tmp_path / "container.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping at top level, got list"):
            load_config(path)

    def test_unknown_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "container.ini"
        path.write_text("[section]\n")
        with pytest.raises(ConfigError, match="Unrecognized configuration format: container.ini"):
            load_config(path)
