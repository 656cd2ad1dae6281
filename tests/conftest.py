import hashlib
from pathlib import Path

import pytest
import yaml

from shipwright.config import Config
from shipwright.datacls import PublishedArtifact
from shipwright.exceptions import StageBuildError, PushError

CARGO_TOML = '''[package]
name = "rustus"
version = "0.7.1"
edition = "2021"
description = "TUS protocol implementation written in Rust."
'''

BASE_CONFIG = {
    'name': 'rustus',
    'image': 'zhampeisovtigran/rustus',
    'platforms': ['linux/amd64', 'linux/arm64'],
}


class FakeBuilder:
    """Records build calls; fails on the stages listed in ``fail_on``."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def build(self, dockerfile, context, target, platforms, build_args):
        self.calls.append((target, tuple(platforms), dict(build_args)))
        if target in self.fail_on:
            raise StageBuildError(f"Stage '{target}' failed: exit code 101")
        content = Path(dockerfile).read_text() + target + repr(sorted(build_args.items()))
        return "sha256:" + hashlib.sha256(content.encode()).hexdigest()


class FakeRegistry:
    """tag -> digest, shared by publishers like a real registry namespace."""

    def __init__(self):
        self.tags = {}


class FakePublisher:

    def __init__(self, registry=None, fail=False):
        self.registry = registry if registry is not None else FakeRegistry()
        self.fail = fail
        self.pushes = []

    def push(self, image, tags):
        self.pushes.append((image, list(tags)))
        if self.fail:
            raise PushError("connection reset by peer")
        for tag in tags:
            self.registry.tags[tag] = image.image_id
        return PublishedArtifact(digest=image.image_id, tags=list(tags))


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A build context with a Cargo manifest and source directories."""
    (tmp_path / "Cargo.toml").write_text(CARGO_TOML)
    (tmp_path / "Cargo.lock").write_text("# lock\n")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.rs").write_text("fn main() {}\n")
    (tmp_path / "imgs").mkdir()
    return tmp_path


@pytest.fixture
def create_config_file(project_dir: Path):
    """Write a release.yml into the project dir, merged over BASE_CONFIG."""
    def _create_file(overrides: dict = None) -> Path:
        data = dict(BASE_CONFIG)
        data.update(overrides or {})
        config_file = project_dir / "release.yml"
        with open(config_file, 'w') as f:
            yaml.dump(data, f)
        return config_file
    return _create_file


@pytest.fixture
def config(create_config_file) -> Config:
    return Config(create_config_file())
