"""
End-to-end tests against a real Git repository.

These tests are skipped when the ``git`` executable is not available.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from gitchanges.changelog.builder import SKIPPED_PLACEHOLDER, build_change_groups
from gitchanges.changelog.models import GenerateConfig
from gitchanges.vcs.git_client import GitClient


def make_history(repo):
    repo.commit("init", date="2024-01-01")
    repo.tag("v0.1.0", annotated=True)
    repo.commit("feat: add export", date="2024-01-02")
    repo.commit("fix: handle empty input\n\nCloses #12", date="2024-01-03")
    repo.tag("v0.2.0")
    repo.commit("chore: wip", date="2024-01-04")


def labels(group):
    return list(group.labeled_changes)


def descriptions(group, label=""):
    return [change.description for change in group.labeled_changes[label]]


def test_tag_index_resolves_both_tag_kinds(git_repo):
    make_history(git_repo)
    head = git_repo.git("rev-parse", "HEAD~1").strip()
    first = git_repo.git("rev-list", "--max-parents=0", "HEAD").strip()
    index = GitClient(git_repo.root).build_tag_index()
    assert index == {head: "v0.2.0", first: "v0.1.0"}


def test_history_is_grouped_by_tags(git_repo):
    make_history(git_repo)
    groups = build_change_groups(GitClient(git_repo.root), GenerateConfig())
    assert [(g.tag, g.date) for g in groups] == [
        ("Unreleased", None),
        ("v0.2.0", "2024-01-03"),
        ("v0.1.0", "2024-01-01"),
    ]
    assert descriptions(groups[0]) == ["chore: wip"]
    assert descriptions(groups[1]) == ["fix: handle empty input", "feat: add export"]
    assert descriptions(groups[2]) == ["init"]


def test_since_until_and_grouping(git_repo):
    make_history(git_repo)
    config = GenerateConfig(
        since_tag="v0.1.0",
        until_tag="v0.2.0",
        group_by_pattern=r"^(\w+):",
        skip_pattern=r"^chore",
    )
    groups = build_change_groups(GitClient(git_repo.root), config)
    assert [g.tag for g in groups] == ["v0.2.0"]
    assert labels(groups[0]) == ["fix", "feat"]


def test_empty_repository(git_repo):
    groups = build_change_groups(GitClient(git_repo.root), GenerateConfig())
    assert len(groups) == 1
    assert groups[0].tag == "Unreleased"
    assert descriptions(groups[0]) == [SKIPPED_PLACEHOLDER]


def test_default_project_name(git_repo):
    assert GitClient(Path(git_repo.root)).name() == "Demo-Project"


def test_signed_history_with_show_signature_enabled(git_repo, tmp_path):
    if shutil.which("ssh-keygen") is None:
        pytest.skip("ssh-keygen not available")
    key = tmp_path / "signing_key"
    subprocess.run(
        ["ssh-keygen", "-q", "-t", "ed25519", "-N", "", "-f", str(key)],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=True,
    )
    git_repo.git("config", "gpg.format", "ssh")
    git_repo.git("config", "user.signingkey", str(key))
    git_repo.git("config", "commit.gpgsign", "true")
    git_repo.git("config", "log.showSignature", "true")
    try:
        git_repo.commit("init", date="2024-01-01")
    except subprocess.CalledProcessError:
        pytest.skip("git cannot sign commits with ssh keys")
    git_repo.tag("v1")
    git_repo.commit("feat: signed change", date="2024-01-02")

    groups = build_change_groups(GitClient(git_repo.root), GenerateConfig())
    assert [g.tag for g in groups] == ["Unreleased", "v1"]
    assert descriptions(groups[0]) == ["feat: signed change"]
    assert descriptions(groups[1]) == ["init"]
