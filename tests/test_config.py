"""
Tests for manifest loading and the config check use case.
"""

import textwrap
from pathlib import Path

import pytest

from debrepack.core.config.loader import (
    ConfigError,
    find_manifest_file,
    load_manifest,
    resolve_path,
)
from debrepack.core.use_cases.config_check import check_config


@pytest.fixture
def valid_manifest(tmp_path: Path) -> Path:
    """Create a valid debrepack.yml in a temp directory."""
    content = textwrap.dedent("""\
        packages:
          - name: ripgrep
            url: "https://github.com/BurntSushi/ripgrep/releases/download/{{ version }}/ripgrep_{{ version }}-1_{{ deb_architecture }}.deb"
            version: "14.1.0"

        apps:
          - name: vale
            url: "https://github.com/errata-ai/vale/releases/download/v{{ version }}/vale_{{ version }}_Linux_{{ vale_architecture }}.tar.gz"
            version: 3.0.0
            description: Syntax-aware prose linter
            move_rules:
              - src_regex: "^vale$"
                dst: usr/bin/vale
                mode: "0755"

        settings:
          maintainer: "Ops <ops@example.com>"
          output_dir: out
    """)
    path = tmp_path / "debrepack.yml"
    path.write_text(content)
    return path


class TestLoadManifest:
    def test_loads_valid(self, valid_manifest: Path):
        m = load_manifest(valid_manifest)
        assert [p.name for p in m.packages] == ["ripgrep"]
        assert m.apps[0].version == "3.0.0"
        assert m.apps[0].move_rules[0].mode == 0o755
        assert m.settings.maintainer == "Ops <ops@example.com>"
        assert m.settings.output_dir == "out"

    def test_default_architectures(self, valid_manifest: Path):
        m = load_manifest(valid_manifest)
        assert [a.id for a in m.architectures] == ["amd64", "arm64"]

    def test_custom_architectures(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text(textwrap.dedent("""\
            architectures:
              - id: armhf
                deb: armhf
                variants:
                  ansible: armv7l
        """))
        m = load_manifest(path)
        assert m.architectures[0].template_names()["ansible_architecture"] == "armv7l"

    def test_list_files(self, tmp_path: Path):
        (tmp_path / "package.yml").write_text(textwrap.dedent("""\
            - name: foo
              url: https://x/foo.deb
              version: "1"
        """))
        (tmp_path / "app.yml").write_text("[]\n")
        path = tmp_path / "debrepack.yml"
        path.write_text("packages: package.yml\napps: app.yml\n")

        m = load_manifest(path)
        assert [p.name for p in m.packages] == ["foo"]
        assert m.apps == []

    def test_list_file_missing(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text("apps: nowhere.yml\n")
        with pytest.raises(ConfigError, match="'apps' file not found"):
            load_manifest(path)

    def test_list_file_not_a_list(self, tmp_path: Path):
        (tmp_path / "app.yml").write_text("name: oops\n")
        path = tmp_path / "debrepack.yml"
        path.write_text("apps: app.yml\n")
        with pytest.raises(ConfigError, match="Expected a YAML list"):
            load_manifest(path)

    def test_empty_file_is_default_manifest(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text("")
        m = load_manifest(path)
        assert m.packages == [] and m.apps == []

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_manifest(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text("apps: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_manifest(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_manifest(path)

    def test_validation_error(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text(textwrap.dedent("""\
            apps:
              - name: bad
                url: https://x/bad.tar.gz
                version: "1"
                move_rules:
                  - src_regex: x
                    dst: /absolute/path
        """))
        with pytest.raises(ConfigError, match="Invalid manifest configuration"):
            load_manifest(path)

    def test_empty_builder(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text("settings:\n  builder: []\n")
        with pytest.raises(ConfigError, match="builder"):
            load_manifest(path)

    def test_auto_discovery(self, valid_manifest: Path, monkeypatch):
        nested = valid_manifest.parent / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert find_manifest_file() == valid_manifest.resolve()
        assert load_manifest().apps[0].name == "vale"

    def test_no_manifest_anywhere(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match="No debrepack.yml found"):
            load_manifest()

    def test_resolve_path(self, tmp_path: Path):
        assert resolve_path(tmp_path, "dist") == tmp_path / "dist"
        assert resolve_path(tmp_path, "/abs/dist") == Path("/abs/dist")


class TestConfigCheck:
    def test_valid(self, valid_manifest: Path):
        result = check_config(valid_manifest)
        assert result.valid, result.errors
        d = result.to_dict()
        assert d["package_count"] == 1
        assert d["app_count"] == 1
        assert d["architectures"] == ["amd64", "arm64"]

    def test_missing(self, tmp_path: Path):
        result = check_config(tmp_path / "nope.yml")
        assert not result.valid
        assert any("not found" in e for e in result.errors)

    def test_empty_manifest_warns(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text("{}\n")
        result = check_config(path)
        assert result.valid
        assert any("Nothing will be built" in w for w in result.warnings)

    def test_unknown_placeholder_warns(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text(textwrap.dedent("""\
            packages:
              - name: foo
                url: "https://x/{{ flavour }}.deb"
                version: "1"
        """))
        result = check_config(path)
        assert result.valid
        assert any("flavour" in w for w in result.warnings)

    def test_app_without_rules_warns(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text(textwrap.dedent("""\
            apps:
              - name: bare
                url: https://x/bare.tar.gz
                version: "1"
        """))
        result = check_config(path)
        assert any("no move_rules" in w for w in result.warnings)

    def test_unknown_archive_format_is_error(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text(textwrap.dedent("""\
            apps:
              - name: zipped
                url: "https://x/zipped-{{ version }}.zip"
                version: "1"
                move_rules:
                  - src_regex: x
                    dst: usr/bin/x
        """))
        result = check_config(path)
        assert not result.valid
        assert any("Unknown archive format" in e for e in result.errors)

    def test_empty_builder_is_error(self, tmp_path: Path):
        path = tmp_path / "debrepack.yml"
        path.write_text("settings:\n  builder: []\n")
        result = check_config(path)
        assert not result.valid
        assert any("builder" in e for e in result.errors)
