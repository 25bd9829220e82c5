# ───────────────────────── tests/test_sync.py ─────────────────────────
"""
Tests for the vault tree synchronization engine.
"""

import logging
import os
from unittest.mock import patch

import pytest

from src.pdfvault.config import Config
from src.pdfvault.errors import (
    ConflictError,
    CreationError,
    DeletionError,
    InvalidNameError,
    MoveError,
    NameConflictError,
    RenameError,
)
from src.pdfvault.logging_utils import LOGGER_NAME
from src.pdfvault.model import NodeKind
from src.pdfvault.scanner import DirectoryScanner
from src.pdfvault.sync import VaultTreeSync, open_vault
from src.pdfvault.tree import VaultTree


def make_sync(vault_dir) -> VaultTreeSync:
    config = Config(vault_path=str(vault_dir))
    return open_vault(config)


def tree_matches_disk(sync: VaultTreeSync) -> bool:
    """Compare the in-memory tree with a fresh scan, order-insensitively."""
    fresh = DirectoryScanner(sync.config).scan(sync.vault_root).root
    return {(n.path, n.kind) for n in fresh.walk()} == {
        (n.path, n.kind) for n in sync.tree.walk()
    }


@pytest.fixture
def vault(tmp_path):
    root = tmp_path / "My CASTLE"
    root.mkdir()
    return root


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "outside"
    src.mkdir()
    (src / "doc.pdf").write_bytes(b"%PDF-1.4 new")
    (src / "other.pdf").write_bytes(b"%PDF-1.4 other")
    (src / "image.png").write_bytes(b"png")
    return src


class TestOpenVault:
    """Test startup."""

    def test_creates_missing_vault(self, tmp_path):
        vault = tmp_path / "Documents" / "My CASTLE"
        sync = make_sync(vault)
        assert vault.is_dir()
        assert sync.tree.root.kind is NodeKind.ROOT
        assert sync.tree.root.children == []

    def test_loads_existing_content(self, vault):
        (vault / "a.pdf").touch()
        (vault / "Sub").mkdir()
        sync = make_sync(vault)
        assert [c.name for c in sync.tree.root.children] == ["a.pdf", "Sub"]


class TestCreateFolder:
    """Test folder creation and destination resolution."""

    def test_two_folders_without_selection(self, vault):
        """Scenario: empty vault, two creations give "New Folder" and "New Folder 0"."""
        sync = make_sync(vault)
        first = sync.create_folder()
        second = sync.create_folder()

        assert first.name == "New Folder"
        assert second.name == "New Folder 0"
        assert (vault / "New Folder").is_dir()
        assert (vault / "New Folder 0").is_dir()
        assert sync.tree.root.children == [first, second]
        assert tree_matches_disk(sync)

    def test_names_are_unique(self, vault):
        """Repeated creation in one directory never reuses a name."""
        sync = make_sync(vault)
        names = [sync.create_folder().name for _ in range(12)]
        assert len(set(names)) == len(names)
        assert sorted(os.listdir(vault)) == sorted(names)

    def test_folder_selected(self, vault):
        (vault / "Sub").mkdir()
        sync = make_sync(vault)
        sub = sync.tree.find_node(str(vault / "Sub"))
        assert not sub.expanded

        node = sync.create_folder(sub)

        assert node.parent is sub
        assert node.path == str(vault / "Sub" / "New Folder")
        assert sub.expanded

    def test_file_selected_uses_parent(self, vault):
        (vault / "Sub").mkdir()
        (vault / "Sub" / "a.pdf").touch()
        sync = make_sync(vault)
        selected = sync.tree.find_node(str(vault / "Sub" / "a.pdf"))

        node = sync.create_folder(selected)

        assert node.parent is selected.parent
        assert (vault / "Sub" / "New Folder").is_dir()
        # Appended after the existing file, no resorting.
        assert [c.name for c in selected.parent.children] == ["a.pdf", "New Folder"]

    def test_failure_leaves_tree_untouched(self, vault):
        sync = make_sync(vault)
        with patch("src.pdfvault.sync.os.mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(CreationError):
                sync.create_folder()
        assert sync.tree.root.children == []
        assert os.listdir(vault) == []


class TestImportFiles:
    """Test importing PDFs into the vault."""

    def test_import_into_root(self, vault, source_dir):
        sync = make_sync(vault)
        report = sync.import_files(None, [str(source_dir / "doc.pdf")])

        assert report.ok
        assert [n.name for n in report.inserted] == ["doc.pdf"]
        assert (vault / "doc.pdf").read_bytes() == b"%PDF-1.4 new"
        # Originals are copied, never moved.
        assert (source_dir / "doc.pdf").exists()
        assert sync.tree.root.expanded

    def test_name_collision_gets_counter(self, vault, source_dir):
        """Scenario: importing doc.pdf next to doc.pdf gives doc (1).pdf."""
        (vault / "doc.pdf").write_bytes(b"original")
        sync = make_sync(vault)
        root = sync.tree.root

        report = sync.import_files(root, [str(source_dir / "doc.pdf")])

        assert [n.name for n in report.inserted] == ["doc (1).pdf"]
        assert (vault / "doc.pdf").read_bytes() == b"original"
        assert (vault / "doc (1).pdf").read_bytes() == b"%PDF-1.4 new"
        assert tree_matches_disk(sync)

    def test_same_file_twice(self, vault, source_dir):
        sync = make_sync(vault)
        src = str(source_dir / "doc.pdf")
        report = sync.import_files(None, [src, src])
        assert [n.name for n in report.inserted] == ["doc.pdf", "doc (1).pdf"]

    def test_failure_does_not_stop_batch(self, vault, source_dir):
        """A failing file is reported and later files are still imported."""
        sync = make_sync(vault)
        sources = [
            str(source_dir / "missing.pdf"),
            str(source_dir / "image.png"),
            str(source_dir / "doc.pdf"),
            str(source_dir / "other.pdf"),
        ]

        report = sync.import_files(None, sources)

        assert [n.name for n in report.inserted] == ["doc.pdf", "other.pdf"]
        assert [e.source for e in report.failures] == sources[:2]
        assert not report.ok
        assert tree_matches_disk(sync)

    def test_copy_failure_mid_batch(self, vault, source_dir):
        import shutil

        real_copy = shutil.copy2

        def flaky_copy(src, dst):
            if src.endswith("doc.pdf"):
                raise OSError(28, "No space left on device")
            return real_copy(src, dst)

        sync = make_sync(vault)
        with patch("src.pdfvault.sync.shutil.copy2", side_effect=flaky_copy):
            report = sync.import_files(
                None, [str(source_dir / "doc.pdf"), str(source_dir / "other.pdf")]
            )

        assert [n.name for n in report.inserted] == ["other.pdf"]
        assert len(report.failures) == 1
        assert not (vault / "doc.pdf").exists()

    def test_import_into_selected_file_folder(self, vault, source_dir):
        (vault / "Sub").mkdir()
        (vault / "Sub" / "a.pdf").touch()
        sync = make_sync(vault)
        selected = sync.tree.find_node(str(vault / "Sub" / "a.pdf"))

        report = sync.import_files(selected, [str(source_dir / "doc.pdf")])

        assert report.destination is selected.parent
        assert (vault / "Sub" / "doc.pdf").exists()
        assert selected.parent.expanded


class TestDelete:
    """Test deletion."""

    def test_delete_file(self, vault):
        (vault / "a.pdf").touch()
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "a.pdf"))

        assert sync.delete(node)
        assert not (vault / "a.pdf").exists()
        assert sync.tree.find_node(str(vault / "a.pdf")) is None

    def test_delete_folder_recursively(self, vault):
        (vault / "Sub" / "Deep").mkdir(parents=True)
        (vault / "Sub" / "Deep" / "x.pdf").touch()
        sync = make_sync(vault)

        assert sync.delete(sync.tree.find_node(str(vault / "Sub")))
        assert not (vault / "Sub").exists()
        assert sync.tree.root.children == []

    def test_root_is_not_deletable(self, vault):
        sync = make_sync(vault)
        assert sync.delete(sync.tree.root) is False
        assert vault.is_dir()

    def test_failure_leaves_tree_untouched(self, vault):
        (vault / "a.pdf").touch()
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "a.pdf"))

        with patch("src.pdfvault.sync.os.remove", side_effect=PermissionError("busy")):
            with pytest.raises(DeletionError):
                sync.delete(node)

        assert sync.tree.find_node(str(vault / "a.pdf")) is node
        assert (vault / "a.pdf").exists()


class TestRename:
    """Test in-place renames."""

    def test_rename_file(self, vault):
        (vault / "a.pdf").touch()
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "a.pdf"))

        assert sync.rename(node, "  b.pdf  ")
        assert node.name == "b.pdf"
        assert node.path == str(vault / "b.pdf")
        assert (vault / "b.pdf").exists()
        assert not (vault / "a.pdf").exists()

    def test_rename_folder_rebases_descendants(self, vault):
        (vault / "A" / "B").mkdir(parents=True)
        (vault / "A" / "B" / "x.pdf").touch()
        sync = make_sync(vault)
        a = sync.tree.find_node(str(vault / "A"))

        assert sync.rename(a, "Archive")

        assert sync.tree.find_node(str(vault / "Archive" / "B" / "x.pdf")) is not None
        assert sync.tree.find_node(str(vault / "A")) is None
        assert tree_matches_disk(sync)

    def test_empty_name_is_silent_cancel(self, vault):
        """Scenario: a blank name keeps the old name and touches nothing."""
        (vault / "FolderA").mkdir()
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "FolderA"))

        with patch("src.pdfvault.sync.os.rename") as mock_rename:
            assert sync.rename(node, "   ") is False
            assert sync.rename(node, "FolderA") is False
            mock_rename.assert_not_called()

        assert node.name == "FolderA"

    @pytest.mark.parametrize("bad_name", ["a/b", "what?", "x:y"])
    def test_invalid_name_is_rejected(self, vault, bad_name):
        (vault / "a.pdf").touch()
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "a.pdf"))

        with pytest.raises(InvalidNameError):
            sync.rename(node, bad_name)

        assert node.path == str(vault / "a.pdf")
        assert node.name == "a.pdf"
        assert (vault / "a.pdf").exists()

    def test_conflict_is_rejected(self, vault):
        (vault / "a.pdf").write_bytes(b"a")
        (vault / "b.pdf").write_bytes(b"b")
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "a.pdf"))

        with pytest.raises(NameConflictError):
            sync.rename(node, "b.pdf")

        assert node.name == "a.pdf"
        assert (vault / "a.pdf").read_bytes() == b"a"
        assert (vault / "b.pdf").read_bytes() == b"b"

    def test_pdf_must_keep_extension(self, vault):
        (vault / "a.pdf").touch()
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "a.pdf"))

        with pytest.raises(InvalidNameError):
            sync.rename(node, "a.txt")
        assert (vault / "a.pdf").exists()

    def test_filesystem_failure(self, vault):
        (vault / "a.pdf").touch()
        sync = make_sync(vault)
        node = sync.tree.find_node(str(vault / "a.pdf"))

        with patch("src.pdfvault.sync.os.rename", side_effect=OSError("locked")):
            with pytest.raises(RenameError):
                sync.rename(node, "b.pdf")

        assert node.name == "a.pdf"
        assert node.path == str(vault / "a.pdf")

    def test_root_cannot_be_renamed(self, vault):
        sync = make_sync(vault)
        root = sync.tree.root
        assert sync.rename(root, "Elsewhere") is False
        assert root.path == str(vault.resolve())


class TestMove:
    """Test drag-and-drop moves."""

    def test_move_file_into_folder(self, vault):
        (vault / "x.pdf").touch()
        (vault / "Y").mkdir()
        sync = make_sync(vault)

        moved = sync.move(
            sync.tree.find_node(str(vault / "x.pdf")),
            sync.tree.find_node(str(vault / "Y")),
        )

        assert moved
        assert (vault / "Y" / "x.pdf").exists()
        assert not (vault / "x.pdf").exists()
        assert sync.tree.find_node(str(vault / "Y" / "x.pdf")) is not None
        assert tree_matches_disk(sync)

    def test_drop_on_file_targets_its_folder(self, vault):
        (vault / "x.pdf").touch()
        (vault / "Y").mkdir()
        (vault / "Y" / "z.pdf").touch()
        sync = make_sync(vault)

        assert sync.move(
            sync.tree.find_node(str(vault / "x.pdf")),
            sync.tree.find_node(str(vault / "Y" / "z.pdf")),
        )
        assert (vault / "Y" / "x.pdf").exists()

    def test_conflict_refuses_without_disk_write(self, vault):
        """Scenario: same name in the target folder refuses the move."""
        (vault / "x.pdf").write_bytes(b"mine")
        (vault / "Y").mkdir()
        (vault / "Y" / "x.pdf").write_bytes(b"theirs")
        sync = make_sync(vault)
        source = sync.tree.find_node(str(vault / "x.pdf"))

        with patch("src.pdfvault.sync.shutil.move") as mock_move:
            with pytest.raises(ConflictError):
                sync.move(source, sync.tree.find_node(str(vault / "Y")))
            mock_move.assert_not_called()

        assert (vault / "x.pdf").read_bytes() == b"mine"
        assert (vault / "Y" / "x.pdf").read_bytes() == b"theirs"
        assert sync.tree.find_node(str(vault / "x.pdf")) is source

    def test_root_and_self_moves_are_noops(self, vault):
        (vault / "Y").mkdir()
        sync = make_sync(vault)
        y = sync.tree.find_node(str(vault / "Y"))

        assert sync.move(sync.tree.root, y) is False
        assert sync.move(y, y) is False
        # Dropping onto its own folder.
        assert sync.move(y, sync.tree.root) is False
        assert (vault / "Y").is_dir()

    def test_folder_into_own_descendant(self, vault):
        (vault / "A" / "B").mkdir(parents=True)
        sync = make_sync(vault)

        with pytest.raises(MoveError):
            sync.move(
                sync.tree.find_node(str(vault / "A")),
                sync.tree.find_node(str(vault / "A" / "B")),
            )
        assert (vault / "A" / "B").is_dir()

    def test_expansion_survives_rebuild(self, vault):
        """Expanded folders stay expanded after the move's full rebuild."""
        (vault / "A" / "B").mkdir(parents=True)
        (vault / "C").mkdir()
        (vault / "x.pdf").touch()
        sync = make_sync(vault)
        sync.tree.find_node(str(vault / "A")).expanded = True
        sync.tree.find_node(str(vault / "A" / "B")).expanded = True

        assert sync.move(
            sync.tree.find_node(str(vault / "x.pdf")),
            sync.tree.find_node(str(vault / "C")),
        )

        assert sync.tree.find_node(str(vault / "A")).expanded
        assert sync.tree.find_node(str(vault / "A" / "B")).expanded
        assert not sync.tree.find_node(str(vault / "C")).expanded

    def test_moved_folder_keeps_its_expansion(self, vault):
        (vault / "A" / "B").mkdir(parents=True)
        (vault / "C").mkdir()
        sync = make_sync(vault)
        sync.tree.find_node(str(vault / "A" / "B")).expanded = True

        assert sync.move(
            sync.tree.find_node(str(vault / "A")),
            sync.tree.find_node(str(vault / "C")),
        )

        assert sync.tree.find_node(str(vault / "C" / "A" / "B")).expanded

    def test_failure_rebuilds_and_reports(self, vault):
        (vault / "x.pdf").touch()
        (vault / "Y").mkdir()
        sync = make_sync(vault)
        old_root = sync.tree.root

        failing_move = patch(
            "src.pdfvault.sync.shutil.move", side_effect=OSError("cross-device")
        )
        with failing_move:
            with pytest.raises(MoveError):
                sync.move(
                    sync.tree.find_node(str(vault / "x.pdf")),
                    sync.tree.find_node(str(vault / "Y")),
                )

        assert sync.tree.root is not old_root
        assert tree_matches_disk(sync)


class TestRootImmutability:
    """Root identity is fixed for every operation."""

    def test_root_operations_are_noops(self, vault):
        (vault / "Y").mkdir()
        sync = make_sync(vault)
        root = sync.tree.root
        root_path = root.path

        assert sync.delete(root) is False
        assert sync.rename(root, "anything") is False
        assert sync.move(root, sync.tree.find_node(str(vault / "Y"))) is False

        assert sync.tree.root is root
        assert root.path == root_path
        assert vault.is_dir()


class TestReload:
    """Test full rebuilds."""

    def test_reload_picks_up_external_changes(self, vault):
        sync = make_sync(vault)
        (vault / "Sub").mkdir()
        (vault / "late.pdf").touch()
        sync.tree.root.expanded = True

        sync.reload()

        assert sync.tree.find_node(str(vault / "late.pdf")) is not None
        assert sync.tree.root.expanded
        assert tree_matches_disk(sync)

    def test_engine_accepts_explicit_tree(self, vault):
        (vault / "a.pdf").touch()
        config = Config(vault_path=str(vault))
        scanner = DirectoryScanner(config)
        tree = VaultTree(scanner.scan(str(vault)).root)

        sync = VaultTreeSync(tree, scanner=scanner, config=config)

        assert sync.vault_root == str(vault)
        assert sync.create_folder().path == str(vault / "New Folder")


class TestStaleHandles:
    """Node handles taken before a rebuild act on the current tree."""

    def setup_vault(self, vault):
        (vault / "a.pdf").touch()
        (vault / "x.pdf").touch()
        (vault / "Y").mkdir()
        sync = make_sync(vault)
        held = sync.tree.find_node(str(vault / "a.pdf"))
        assert sync.move(
            sync.tree.find_node(str(vault / "x.pdf")),
            sync.tree.find_node(str(vault / "Y")),
        )
        return sync, held

    def test_delete_after_rebuild(self, vault):
        sync, held = self.setup_vault(vault)

        assert sync.delete(held)

        assert not (vault / "a.pdf").exists()
        assert sync.tree.find_node(str(vault / "a.pdf")) is None
        assert tree_matches_disk(sync)

    def test_rename_after_rebuild(self, vault):
        sync, held = self.setup_vault(vault)

        assert sync.rename(held, "b.pdf")

        assert (vault / "b.pdf").exists()
        assert sync.tree.find_node(str(vault / "b.pdf")) is not None
        assert sync.tree.find_node(str(vault / "a.pdf")) is None
        assert tree_matches_disk(sync)

    def test_move_after_rebuild(self, vault):
        (vault / "Z").mkdir()
        sync = make_sync(vault)
        held_source = sync.tree.find_node(str(vault / "Z"))
        sync.reload()
        (vault / "a.pdf").touch()
        (vault / "Y").mkdir()
        sync.reload()
        held_target = sync.tree.find_node(str(vault / "Y"))
        sync.reload()

        assert sync.move(held_source, held_target)

        assert (vault / "Y" / "Z").is_dir()
        assert sync.tree.find_node(str(vault / "Y" / "Z")) is not None
        assert tree_matches_disk(sync)

    def test_vanished_node_is_rejected(self, vault):
        (vault / "a.pdf").touch()
        (vault / "Y").mkdir()
        sync = make_sync(vault)
        held = sync.tree.find_node(str(vault / "a.pdf"))
        folder = sync.tree.find_node(str(vault / "Y"))
        (vault / "a.pdf").unlink()
        sync.reload()

        with pytest.raises(DeletionError):
            sync.delete(held)
        with pytest.raises(RenameError):
            sync.rename(held, "b.pdf")
        with pytest.raises(MoveError):
            sync.move(held, folder)

        assert tree_matches_disk(sync)


class TestNotifications:
    """Each operation tells the tree's listeners what changed."""

    class Recorder:
        def __init__(self):
            self.events = []

        def node_added(self, parent, node):
            self.events.append(("added", node.name))

        def node_removed(self, parent, node):
            self.events.append(("removed", node.name))

        def node_changed(self, node):
            self.events.append(("changed", node.name))

        def tree_replaced(self, root):
            self.events.append(("replaced", root.path))

        def expansion_restored(self, paths):
            self.events.append(("restored",))

    def test_operations_notify_listeners(self, vault, source_dir):
        sync = make_sync(vault)
        sync.tree.root.expanded = True
        recorder = self.Recorder()
        sync.tree.add_listener(recorder)

        folder = sync.create_folder()
        assert recorder.events == [("added", "New Folder")]

        recorder.events.clear()
        sync.import_files(folder, [str(source_dir / "doc.pdf")])
        assert recorder.events == [("added", "doc.pdf"), ("changed", "New Folder")]

        recorder.events.clear()
        doc = sync.tree.find_node(str(vault / "New Folder" / "doc.pdf"))
        sync.rename(doc, "paper.pdf")
        assert recorder.events == [("changed", "paper.pdf")]

        recorder.events.clear()
        paper = sync.tree.find_node(str(vault / "New Folder" / "paper.pdf"))
        sync.move(paper, sync.tree.root)
        assert recorder.events == [("replaced", sync.vault_root), ("restored",)]

        recorder.events.clear()
        sync.delete(sync.tree.find_node(str(vault / "paper.pdf")))
        assert recorder.events == [("removed", "paper.pdf")]


class TestScanWarnings:
    """Scan warnings reach the engine and the log."""

    def test_rebuild_warning_is_logged_once(self, vault):
        (vault / "Broken").mkdir()
        sync = make_sync(vault)
        real_list = sync.scanner._list
        broken = str(vault / "Broken")

        def fake_list(path):
            if path == broken:
                raise OSError(5, "Input/output error", path)
            return real_list(path)

        logger = logging.getLogger(LOGGER_NAME)
        with patch.object(sync.scanner, "_list", side_effect=fake_list):
            with patch.object(logger, "warning") as mock_warning:
                sync.reload()

        assert [w.path for w in sync.last_scan_warnings] == [broken]
        assert mock_warning.call_count == 1
