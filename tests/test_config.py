import textwrap

import pytest

from packed_registry import Registry
from packed_registry.config import load_config


# TRIVIAL: mirrors dataclass defaults; kept for documentation.
def test_load_config_defaults_when_missing(tmp_path):
    config = load_config(tmp_path)

    assert config.path is None
    assert config.registry.sort_names is True
    assert config.registry.warn_on_override is True
    assert config.decode.strict is False
    assert config.startup.modules == []
    assert config.startup_module_paths() == []


def test_load_config_reads_fields(tmp_path):
    config_file = tmp_path / "packed-registry.toml"
    config_file.write_text(
        textwrap.dedent(
            """
            [registry]
            sort_names = false
            warn_on_override = false

            [decode]
            strict = true

            [startup]
            modules = ["plugins/math_funcs.py", "extra.py"]
            """
        ).strip()
    )

    config = load_config(tmp_path)

    assert config.path == config_file
    assert config.base_dir == tmp_path
    assert config.registry.sort_names is False
    assert config.registry.warn_on_override is False
    assert config.decode.strict is True
    assert config.startup.modules == ["plugins/math_funcs.py", "extra.py"]
    assert config.startup_module_paths() == [
        (tmp_path / "plugins" / "math_funcs.py").resolve(),
        (tmp_path / "extra.py").resolve(),
    ]


def test_partial_config_keeps_defaults(tmp_path):
    (tmp_path / "packed-registry.toml").write_text("[decode]\nstrict = true\n")

    config = load_config(tmp_path)

    assert config.decode.strict is True
    assert config.registry.sort_names is True
    assert config.startup.modules == []


def test_non_boolean_flag_is_rejected(tmp_path):
    (tmp_path / "packed-registry.toml").write_text('[registry]\nsort_names = "yes"\n')

    with pytest.raises(ValueError, match="sort_names must be true or false"):
        load_config(tmp_path)


def test_startup_modules_must_be_strings(tmp_path):
    (tmp_path / "packed-registry.toml").write_text("[startup]\nmodules = [1, 2]\n")

    with pytest.raises(ValueError, match="modules must be a list"):
        load_config(tmp_path)


def test_strict_config_reaches_adapters(tmp_path):
    (tmp_path / "packed-registry.toml").write_text("[decode]\nstrict = true\n")
    registry = Registry(config=load_config(tmp_path))

    def add(x: int, y: int) -> int:
        return x + y

    registry.register("add").set_body_simple(add)

    assert registry.get("add")(3, 4) == 7
    with pytest.raises(TypeError):
        registry.get("add")("3", 4)
