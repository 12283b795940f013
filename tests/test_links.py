"""
Tests for dotfile linking and shell startup file edits.
"""

import os
from pathlib import Path

import pytest

from dotfiles_provisioner.lib.links import backup_path, is_link_to, link_file
from dotfiles_provisioner.lib.shellrc import append_line, export_line, has_line, source_line


@pytest.fixture
def src(tmp_path: Path) -> Path:
    p = tmp_path / "repo" / ".bashrc"
    p.parent.mkdir()
    p.write_text("# repo\n")
    return p


class TestLinkFile:
    def test_creates_link(self, src: Path, home: Path):
        dest = home / ".bashrc"
        assert link_file(str(src), str(dest)) == "linked"
        assert is_link_to(dest, src)

    def test_existing_regular_file_backed_up(self, src: Path, home: Path):
        dest = home / ".bashrc"
        dest.write_text("precious\n")

        result = link_file(str(src), str(dest))

        assert result.startswith("linked (backup: .bashrc.backup-")
        backups = list(home.glob(".bashrc.backup-*"))
        assert len(backups) == 1
        assert backups[0].read_text() == "precious\n"
        assert is_link_to(dest, src)

    def test_correct_link_left_alone(self, src: Path, home: Path):
        dest = home / ".bashrc"
        link_file(str(src), str(dest))
        assert link_file(str(src), str(dest)) == "unchanged"
        assert list(home.glob("*.backup-*")) == []

    def test_dangling_link_replaced(self, src: Path, home: Path, tmp_path: Path):
        dest = home / ".bashrc"
        os.symlink(tmp_path / "gone", dest)
        link_file(str(src), str(dest))
        assert is_link_to(dest, src)
        assert len(list(home.glob(".bashrc.backup-*"))) == 1

    def test_dry_run_touches_nothing(self, src: Path, home: Path):
        dest = home / ".bashrc"
        dest.write_text("keep\n")
        assert link_file(str(src), str(dest), dry_run=True) == "would link"
        assert dest.read_text() == "keep\n"
        assert not dest.is_symlink()

    def test_missing_source(self, home: Path, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            link_file(str(tmp_path / "nope"), str(home / ".bashrc"))

    def test_backup_name_collision(self, home: Path):
        dest = home / ".bashrc"
        (home / ".bashrc.backup-20240101-000000").write_text("older\n")
        assert backup_path(dest, stamp="20240101-000000").name == ".bashrc.backup-20240101-000000-1"


class TestShellRc:
    def test_append_once(self, home: Path):
        rc = home / ".bashrc"
        line = export_line("PATH", "$HOME/.local/bin:$PATH")
        assert append_line(str(rc), line) is True
        assert append_line(str(rc), line) is False
        assert rc.read_text().count(line) == 1

    def test_adds_missing_newline(self, home: Path):
        rc = home / ".bashrc"
        rc.write_text("alias ll='ls -l'")
        append_line(str(rc), source_line("/x/env.sh"))
        assert rc.read_text() == "alias ll='ls -l'\nsource /x/env.sh\n"

    def test_has_line_missing_file(self, home: Path):
        assert has_line(str(home / ".bashrc"), "anything") is False

    def test_export_line_quotes(self):
        assert export_line("PATH", "$HOME/.local/bin:$PATH") == 'export PATH="$HOME/.local/bin:$PATH"'
        assert export_line("MSG", 'say "hi"') == 'export MSG="say \\"hi\\""'

    def test_dry_run(self, home: Path):
        rc = home / ".bashrc"
        assert append_line(str(rc), "export A=1", dry_run=True) is True
        assert not rc.exists()
