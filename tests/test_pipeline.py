import pytest

from shipwright.config import Config
from shipwright.datacls import TriggerEvent
from shipwright.pipeline import ReleasePipeline, PipelineState
from shipwright.exceptions import (
    VersionNotFoundError,
    ManifestMissingError,
    ManifestUnreadableError,
    MalformedVersionError,
    BuildError,
    StageBuildError,
    PushError,
    TriggerError,
)
from tests.conftest import FakeBuilder, FakePublisher, FakeRegistry


@pytest.fixture
def registry():
    return FakeRegistry()


def make_pipeline(config, builder=None, publisher=None):
    return ReleasePipeline(config, builder or FakeBuilder(), publisher or FakePublisher())


class TestSuccessfulRelease:

    def test_publishes_base_under_latest_and_version(self, config, registry):
        publisher = FakePublisher(registry)
        pipeline = make_pipeline(config, publisher=publisher)
        result = pipeline.run(TriggerEvent.tag("v0.7.1"))

        assert pipeline.state == PipelineState.PUBLISHED
        assert result.state == PipelineState.PUBLISHED
        assert result.version == "0.7.1"
        assert result.tags == ["zhampeisovtigran/rustus:latest", "zhampeisovtigran/rustus:0.7.1"]
        assert len(publisher.pushes) == 1
        image, tags = publisher.pushes[0]
        assert image.target == "base"
        assert image.user == "root"
        assert registry.tags["zhampeisovtigran/rustus:latest"] == registry.tags["zhampeisovtigran/rustus:0.7.1"]
        assert result.artifact.digest == registry.tags["zhampeisovtigran/rustus:latest"]

    def test_rootless_is_not_built_for_release(self, config):
        builder = FakeBuilder()
        make_pipeline(config, builder=builder).run(TriggerEvent.manual())
        assert [c[0] for c in builder.calls] == ["builder", "base"]

    def test_tag_name_does_not_influence_version(self, config):
        result = make_pipeline(config).run(TriggerEvent.tag("refs/tags/release-2099"))
        assert result.version == "0.7.1"
        assert result.trigger.ref == "release-2099"

    def test_manual_dispatch_resolves_version(self, config):
        result = make_pipeline(config).run(TriggerEvent.manual())
        assert result.version == "0.7.1"

    def test_commit_time_becomes_source_date_epoch(self, config):
        builder = FakeBuilder()
        make_pipeline(config, builder=builder).run(TriggerEvent.manual(commit_time=1700000000))
        assert all(c[2] == {"SOURCE_DATE_EPOCH": "1700000000"} for c in builder.calls)

    def test_rerun_is_idempotent(self, config, registry):
        first = make_pipeline(config, publisher=FakePublisher(registry)).run(TriggerEvent.tag("v0.7.1"))
        second = make_pipeline(config, publisher=FakePublisher(registry)).run(TriggerEvent.tag("v0.7.1"))
        assert first.artifact.digest == second.artifact.digest
        assert first.tags == second.tags

    def test_instance_runs_once(self, config):
        pipeline = make_pipeline(config)
        pipeline.run(TriggerEvent.manual())
        with pytest.raises(TriggerError, match="already ran"):
            pipeline.run(TriggerEvent.manual())


class TestFailedRelease:

    def test_missing_manifest_aborts_before_build(self, config, project_dir):
        (project_dir / "Cargo.toml").unlink()
        builder, publisher = FakeBuilder(), FakePublisher()
        pipeline = make_pipeline(config, builder, publisher)
        with pytest.raises(ManifestMissingError):
            pipeline.run(TriggerEvent.manual())
        assert pipeline.state == PipelineState.FAILED
        assert builder.calls == []
        assert publisher.pushes == []

    def test_version_outside_window_aborts(self, config, project_dir):
        (project_dir / "Cargo.toml").write_text("# a\n# b\n# c\n# d\n# e\nversion = \"1.0.0\"\n")
        builder = FakeBuilder()
        pipeline = make_pipeline(config, builder)
        with pytest.raises(VersionNotFoundError):
            pipeline.run(TriggerEvent.manual())
        assert builder.calls == []
        assert pipeline.result.error

    def test_strict_mode_rejects_malformed_version(self, create_config_file, project_dir):
        (project_dir / "Cargo.toml").write_text('[package]\nversion = "abc"\n')
        config = Config(create_config_file({'version': {'strict': True}}))
        with pytest.raises(MalformedVersionError):
            make_pipeline(config).run(TriggerEvent.manual())

    def test_lenient_mode_passes_malformed_version(self, config, project_dir):
        (project_dir / "Cargo.toml").write_text('[package]\nversion = "abc"\n')
        result = make_pipeline(config).run(TriggerEvent.manual())
        assert result.tags[-1] == "zhampeisovtigran/rustus:abc"

    def test_build_error_pushes_nothing(self, config, registry):
        registry.tags["zhampeisovtigran/rustus:latest"] = "sha256:previous"
        publisher = FakePublisher(registry)
        pipeline = make_pipeline(config, FakeBuilder(fail_on={"builder"}), publisher)
        with pytest.raises(StageBuildError):
            pipeline.run(TriggerEvent.tag("v0.7.1"))
        assert pipeline.state == PipelineState.FAILED
        assert publisher.pushes == []
        assert registry.tags == {"zhampeisovtigran/rustus:latest": "sha256:previous"}
        assert pipeline.result.version == "0.7.1"

    def test_base_failure_pushes_nothing(self, config):
        publisher = FakePublisher()
        with pytest.raises(StageBuildError):
            make_pipeline(config, FakeBuilder(fail_on={"base"}), publisher).run(TriggerEvent.manual())
        assert publisher.pushes == []

    def test_publish_error_is_terminal(self, config, registry):
        registry.tags["zhampeisovtigran/rustus:latest"] = "sha256:previous"
        pipeline = make_pipeline(config, publisher=FakePublisher(registry, fail=True))
        with pytest.raises(PushError):
            pipeline.run(TriggerEvent.manual())
        assert pipeline.state == PipelineState.FAILED
        assert pipeline.result.artifact is None
        assert registry.tags == {"zhampeisovtigran/rustus:latest": "sha256:previous"}

    def test_undecodable_manifest_marks_run_failed(self, config, project_dir):
        (project_dir / "Cargo.toml").write_bytes(b'\xff[package]\nversion = "0.7.1"\n')
        builder = FakeBuilder()
        pipeline = make_pipeline(config, builder)
        with pytest.raises(ManifestUnreadableError):
            pipeline.run(TriggerEvent.manual())
        assert pipeline.state == PipelineState.FAILED
        assert pipeline.result.state == PipelineState.FAILED
        assert builder.calls == []

    def test_unwritable_dockerfile_marks_run_failed(self, config, project_dir):
        # a plain file where the dockerfile directory should be
        (project_dir / "deploy").write_text("not a directory\n")
        builder, publisher = FakeBuilder(), FakePublisher()
        pipeline = make_pipeline(config, builder, publisher)
        with pytest.raises(BuildError, match="Cannot write Dockerfile"):
            pipeline.run(TriggerEvent.manual())
        assert pipeline.state == PipelineState.FAILED
        assert pipeline.result.error
        assert builder.calls == []
        assert publisher.pushes == []

    def test_unexpected_error_marks_run_failed(self, config):
        class BrokenPublisher:
            def push(self, image, tags):
                raise RuntimeError("registry client crashed")

        pipeline = make_pipeline(config, publisher=BrokenPublisher())
        with pytest.raises(RuntimeError):
            pipeline.run(TriggerEvent.manual())
        assert pipeline.state == PipelineState.FAILED
        assert pipeline.result.error == "registry client crashed"
