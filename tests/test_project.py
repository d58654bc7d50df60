"""
Tests for project-level detection and candidate selection (stacktodate/project.py).
"""

import io
from unittest.mock import MagicMock

from stacktodate.catalog import CycleTruncator
from stacktodate.detection import Candidate
from stacktodate.manifest import StackEntry
from stacktodate.project import (
    DetectedInfo,
    detect_project_info,
    normalize_detected_to_stack,
    select_candidates,
    select_from_candidates,
    unclassified_docker,
)


def _write_rails_app(path):
    (path / ".ruby-version").write_text("3.2.2\n")
    (path / "Gemfile").write_text("gem 'rails', '~> 7.1.0'\n")
    (path / "package.json").write_text('{"engines": {"node": ">=18.0.0"}}')
    (path / "Dockerfile").write_text("FROM ruby:3.3.0-slim\nFROM postgres:15\n")


class TestDetectProjectInfo:
    """Tests for detect_project_info()."""

    def test_normalizes_and_folds_docker(self, project_dir):
        """Test versions are cleaned and classified images appended."""
        _write_rails_app(project_dir)
        info = detect_project_info(project_dir)

        assert info.ruby == [
            Candidate("3.2.2", ".ruby-version"),
            Candidate("3.3.0", "Dockerfile"),
        ]
        assert info.rails == [Candidate("7.1.0", "Gemfile")]
        assert info.node == [Candidate("18.0.0", "package.json")]
        assert [c.value for c in info.docker] == ["ruby:3.3.0-slim", "postgres:15"]

    def test_truncates_with_catalog(self, project_dir, catalog):
        """Test versions are truncated to catalog cycles."""
        _write_rails_app(project_dir)
        info = detect_project_info(project_dir, CycleTruncator(lambda: catalog))

        assert [c.value for c in info.ruby] == ["3.2", "3.3"]
        assert info.rails[0].value == "7.1"
        assert info.node[0].value == "18"

    def test_truncator_receives_manifest_keys(self, project_dir):
        """Test node candidates are truncated as nodejs."""
        (project_dir / ".nvmrc").write_text("20.1.0\n")
        truncator = MagicMock()
        truncator.truncate.side_effect = lambda product, version: version

        detect_project_info(project_dir, truncator)
        truncator.truncate.assert_called_once_with("nodejs", "20.1.0")

    def test_empty_project(self, project_dir):
        """Test empty directory has no candidates."""
        info = detect_project_info(project_dir)
        assert not info.has_candidates()


class TestStackHelpers:
    """Tests for unclassified_docker() and normalize_detected_to_stack()."""

    def test_unclassified_docker(self):
        """Test only non-language images are returned."""
        info = DetectedInfo(docker=[Candidate("node:20", "Dockerfile"), Candidate("redis:7", "docker-compose.yml")])
        assert unclassified_docker(info) == [Candidate("redis:7", "docker-compose.yml")]

    def test_first_candidate_wins(self):
        """Test each technology uses its first candidate."""
        info = DetectedInfo(
            node=[Candidate("18", "package.json"), Candidate("20", ".nvmrc")],
            python=[Candidate("3.11", ".python-version")],
        )
        assert normalize_detected_to_stack(info) == {
            "nodejs": StackEntry("18", "package.json"),
            "python": StackEntry("3.11", ".python-version"),
        }


class TestSelectFromCandidates:
    """Tests for interactive candidate selection."""

    CANDIDATES = [Candidate("18", "package.json"), Candidate("20", ".nvmrc")]

    def _select(self, answers):
        replies = iter(answers)
        out = io.StringIO()
        entry = select_from_candidates("nodejs", self.CANDIDATES, True, lambda _prompt: next(replies), out)
        return entry, out.getvalue()

    def test_non_interactive_takes_first(self):
        """Test first candidate without prompting."""
        entry = select_from_candidates("nodejs", self.CANDIDATES, interactive=False)
        assert entry == StackEntry("18", "package.json")

    def test_pick_second(self):
        """Test numbered choice."""
        entry, output = self._select(["2"])
        assert entry == StackEntry("20", ".nvmrc")
        assert "Select nodejs version" in output
        assert "0) Skip" in output

    def test_skip(self):
        """Test 0 and empty input skip."""
        assert self._select(["0"])[0] is None
        assert self._select([""])[0] is None

    def test_invalid_then_valid(self):
        """Test invalid input re-prompts."""
        entry, output = self._select(["abc", "9", "1"])
        assert entry == StackEntry("18", "package.json")
        assert output.count("Invalid choice. Please try again.") == 2

    def test_eof_skips(self):
        """Test closed stdin skips the technology."""
        def raise_eof(_prompt):
            raise EOFError

        assert select_from_candidates("nodejs", self.CANDIDATES, True, raise_eof, io.StringIO()) is None


class TestSelectCandidates:
    """Tests for select_candidates()."""

    def test_non_interactive(self):
        """Test manifest keys and first candidates."""
        info = DetectedInfo(
            ruby=[Candidate("3.2", ".ruby-version")],
            node=[Candidate("20", ".nvmrc")],
        )
        assert select_candidates(info, interactive=False) == {
            "ruby": StackEntry("3.2", ".ruby-version"),
            "nodejs": StackEntry("20", ".nvmrc"),
        }
