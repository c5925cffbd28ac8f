"""Tests for the canonical base directory resolver."""

import os

import pytest

from comprakt_ci.paths import resolve_base_dir


@pytest.fixture
def real_script(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()
    script = repo / "build"
    script.write_text("#!/bin/sh\n")
    return script


def make_chain(target, links_dir, depth, relative=False):
    """Create `depth` symlinks, each pointing at the previous one."""
    links_dir.mkdir(parents=True, exist_ok=True)
    current = target
    for i in range(depth):
        link = links_dir / f"link{i}"
        if relative:
            link.symlink_to(os.path.relpath(current, link.parent))
        else:
            link.symlink_to(current)
        current = link
    return current


class TestSymlinkDepth:
    """Same canonical directory no matter how many links lead to the script."""

    @pytest.mark.parametrize("depth", [0, 1, 3])
    def test_absolute_links(self, tmp_path, real_script, depth):
        entry = make_chain(real_script, tmp_path / "links", depth)
        assert resolve_base_dir(entry) == real_script.parent.resolve()

    @pytest.mark.parametrize("depth", [1, 3])
    def test_relative_links(self, tmp_path, real_script, depth):
        entry = make_chain(real_script, tmp_path / "elsewhere" / "deep", depth, relative=True)
        assert resolve_base_dir(entry) == real_script.parent.resolve()

    def test_links_spread_over_directories(self, tmp_path, real_script):
        first = tmp_path / "a" / "first"
        second = tmp_path / "b" / "c" / "second"
        first.parent.mkdir()
        second.parent.mkdir(parents=True)
        first.symlink_to(os.path.relpath(real_script, first.parent))
        second.symlink_to(os.path.relpath(first, second.parent))
        assert resolve_base_dir(second) == real_script.parent.resolve()


class TestCallerDirectory:

    @pytest.mark.parametrize("where", ["root", "links", "repo"])
    def test_independent_of_cwd(self, tmp_path, real_script, monkeypatch, where):
        entry = make_chain(real_script, tmp_path / "links", 2, relative=True)
        cwd = {"root": tmp_path, "links": tmp_path / "links", "repo": real_script.parent}[where]
        monkeypatch.chdir(cwd)
        assert resolve_base_dir(os.path.relpath(entry, cwd)) == real_script.parent.resolve()

    def test_does_not_change_cwd(self, tmp_path, real_script, monkeypatch):
        monkeypatch.chdir(tmp_path)
        entry = make_chain(real_script, tmp_path / "links", 3)
        resolve_base_dir(entry)
        assert os.getcwd() == str(tmp_path)


class TestErrors:

    def test_dangling_link_propagates(self, tmp_path):
        link = tmp_path / "dangling"
        link.symlink_to(tmp_path / "missing" / "build")
        with pytest.raises(FileNotFoundError):
            resolve_base_dir(link)
