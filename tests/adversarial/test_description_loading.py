"""Adversarial tests: descriptions that try to step outside their tree."""

from __future__ import annotations

import pytest

from packforge.core.errors import ConfigurationError
from packforge.dsl import load_description


class TestComponentNames:
    @pytest.mark.parametrize(
        "name",
        ["../projects/demo", "/etc/passwd", "sub/dir", ".hidden", "", "a b"],
    )
    def test_path_like_names_are_rejected(self, configdir, write_description, forge_config, name):
        write_description("projects", "demo", f"""
            def project(proj):
                proj.component({name!r})
        """)
        with pytest.raises(ConfigurationError, match="Invalid component name"):
            load_description("demo", "el-9-x86_64", configdir, config=forge_config)

    @pytest.mark.parametrize("name", ["openssl", "libstdc++", "ruby-3.2", "_private"])
    def test_ordinary_names_are_looked_up(self, configdir, write_description, forge_config, name):
        write_description("projects", "demo", f"""
            def project(proj):
                proj.component({name!r})
        """)
        with pytest.raises(ConfigurationError, match="No description file"):
            load_description("demo", "el-9-x86_64", configdir, config=forge_config)


class TestBrokenDescriptions:
    def test_entry_point_that_is_not_callable(self, configdir, write_description, forge_config):
        write_description("projects", "demo", "project = 'not a function'\n")
        with pytest.raises(ConfigurationError, match="must define a project"):
            load_description("demo", "el-9-x86_64", configdir, config=forge_config)

    def test_errors_inside_descriptions_propagate(self, configdir, write_description, forge_config):
        write_description("projects", "demo", """
            def project(proj):
                raise KeyError("no such setting")
        """)
        with pytest.raises(KeyError):
            load_description("demo", "el-9-x86_64", configdir, config=forge_config)

    def test_unknown_dsl_method(self, configdir, write_description, forge_config):
        write_description("projects", "demo", """
            def project(proj):
                proj.definitely_not_a_method("x")
        """)
        with pytest.raises(AttributeError):
            load_description("demo", "el-9-x86_64", configdir, config=forge_config)

    def test_component_cannot_reach_project(self, configdir, write_description, forge_config):
        write_description("components", "nosy", """
            def component(pkg, settings, platform):
                pkg.get_project()
        """)
        write_description("projects", "demo", """
            def project(proj):
                proj.component("nosy")
        """)
        with pytest.raises(AttributeError):
            load_description("demo", "el-9-x86_64", configdir, config=forge_config)
