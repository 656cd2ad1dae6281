import pytest
from click.testing import CliRunner

from shipwright import cli as cli_module
from shipwright.cli import cli
from tests.conftest import FakeBuilder


@pytest.fixture
def runner():
    return CliRunner()


class TestVersionCommand:

    def test_prints_version(self, runner, create_config_file):
        result = runner.invoke(cli, ["version", str(create_config_file())])
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "0.7.1"

    def test_missing_manifest_aborts(self, runner, create_config_file, project_dir):
        config_file = create_config_file()
        (project_dir / "Cargo.toml").unlink()
        result = runner.invoke(cli, ["version", str(config_file)])
        assert result.exit_code == 1

    def test_undecodable_manifest_aborts(self, runner, create_config_file, project_dir):
        config_file = create_config_file()
        (project_dir / "Cargo.toml").write_bytes(b'\xff\xfeversion = "1.0.0"\n')
        result = runner.invoke(cli, ["version", str(config_file)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_missing_config_aborts(self, runner, tmp_path):
        result = runner.invoke(cli, ["version", str(tmp_path / "nope.yml")])
        assert result.exit_code == 1


class TestDockerfileCommand:

    def test_stdout(self, runner, create_config_file):
        result = runner.invoke(cli, ["dockerfile", str(create_config_file()), "-o", "-"])
        assert result.exit_code == 0, result.output
        assert "FROM rust:1.66.0-bullseye AS builder" in result.stdout
        assert "FROM base AS rootless" in result.stdout

    def test_default_path(self, runner, create_config_file, project_dir):
        result = runner.invoke(cli, ["dockerfile", str(create_config_file())])
        assert result.exit_code == 0, result.output
        assert (project_dir / "deploy" / "Dockerfile").exists()

    def test_floating_image_aborts(self, runner, create_config_file):
        result = runner.invoke(cli, ["dockerfile", str(create_config_file({'base': {'image': 'debian'}})), "-o", "-"])
        assert result.exit_code == 1


class TestPlanCommand:

    def test_lists_stages_and_users(self, runner, create_config_file):
        result = runner.invoke(cli, ["plan", str(create_config_file())])
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()[2:]
        assert lines[0].startswith("builder")
        assert lines[1].startswith("base *")
        assert "root" in lines[1] and "/usr/local/bin/rustus" in lines[1]
        assert lines[2].startswith("rootless")
        assert "rustus" in lines[2].split()[2]


class TestReleaseCommand:

    def test_dry_run(self, runner, create_config_file, monkeypatch):
        builder = FakeBuilder()
        monkeypatch.setattr(cli_module, "DockerImageBuilder", lambda: builder)
        result = runner.invoke(cli, ["release", str(create_config_file()), "--manual", "--dry-run"])
        assert result.exit_code == 0, result.output
        assert "zhampeisovtigran/rustus:latest zhampeisovtigran/rustus:0.7.1" in result.stdout
        assert [c[0] for c in builder.calls] == ["builder", "base"]

    def test_missing_credentials_abort_before_build(self, runner, create_config_file, monkeypatch):
        builder = FakeBuilder()
        monkeypatch.setattr(cli_module, "DockerImageBuilder", lambda: builder)
        monkeypatch.delenv("DOCKERHUB_USERNAME", raising=False)
        monkeypatch.delenv("DOCKERHUB_TOKEN", raising=False)
        result = runner.invoke(cli, ["release", str(create_config_file()), "--tag", "v0.7.1"])
        assert result.exit_code == 1
        assert builder.calls == []

    def test_build_failure_aborts(self, runner, create_config_file, monkeypatch):
        monkeypatch.setattr(cli_module, "DockerImageBuilder", lambda: FakeBuilder(fail_on={"builder"}))
        result = runner.invoke(cli, ["release", str(create_config_file()), "--manual", "--dry-run"])
        assert result.exit_code == 1

    def test_tag_and_manual_are_exclusive(self, runner, create_config_file):
        result = runner.invoke(cli, ["release", str(create_config_file()), "--tag", "v1", "--manual"])
        assert result.exit_code == 2


def test_version_option(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "shipwright" in result.stdout
