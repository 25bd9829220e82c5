# ───────────────────────── src/pdfvault/gui.py ─────────────────────────
"""
FreeSimpleGUI interface with retro-monochrome theme.

The window is a thin presentation layer over VaultTreeSync: it forwards user
actions to the engine, subscribes to tree notifications and re-renders the
tree widget from the domain tree, including expansion state.
"""

from pathlib import Path
from typing import Any, List, Optional, Set

import FreeSimpleGUI as sg

from .config import Config
from .errors import VaultAccessError, VaultError
from .gestures import DragGesture
from .logging_utils import log_error
from .model import NodeKind, VaultNode
from .preview import format_size, get_file_info
from .sync import VaultTreeSync, open_vault

TREE_KEY = "-TREE-"


def setup_retro_theme() -> None:
    """Set up the custom RetroMono theme."""

    retro_theme = {
        "BACKGROUND": "#E5E5E5",
        "TEXT": "black",
        "INPUT": "#FFFFFF",
        "TEXT_INPUT": "black",
        "SCROLL": "#D0D0D0",
        "BUTTON": ("black", "#D0D0D0"),
        "PROGRESS": ("black", "#A0A0A0"),
        "BORDER": 1,
        "SLIDER_DEPTH": 0,
        "PROGRESS_DEPTH": 0,
    }

    sg.theme_add_new("RetroMono", retro_theme)
    sg.theme("RetroMono")

    sg.set_options(
        font=("JetBrains Mono", 11),
        element_padding=(6, 4),
        button_element_size=(12, 1),
        border_width=1,
        margins=(10, 10),
    )


def build_tree_data(root: VaultNode) -> sg.TreeData:
    """Convert the domain tree into widget data keyed by absolute path."""
    data = sg.TreeData()
    stack = [("", root)]
    while stack:
        parent_key, node = stack.pop(0)
        label = f"{node.name}/" if node.kind is NodeKind.FOLDER else node.name
        data.insert(parent_key, node.path, label, [])
        stack.extend((node.path, child) for child in node.children)
    return data


class PDFVaultGUI:
    """Main GUI class for PDFVault, listening to VaultTree notifications."""

    def __init__(
        self, config: Optional[Config] = None, sync: Optional[VaultTreeSync] = None
    ):
        """Initialize the GUI.

        Args:
            config: Configuration object, uses defaults if None
            sync: Ready engine; the configured vault is opened if None
        """
        self.config = config or Config()
        self.sync = sync
        self.window = None
        self.selected_path: Optional[str] = None
        self.gesture = DragGesture(self.config.drag_threshold)
        self._dirty = False

        setup_retro_theme()

    # TreeListener

    def node_added(self, parent: VaultNode, node: VaultNode) -> None:
        self._dirty = True

    def node_removed(self, parent: VaultNode, node: VaultNode) -> None:
        if self.selected_path == node.path:
            self.selected_path = None
        self._dirty = True

    def node_changed(self, node: VaultNode) -> None:
        self._dirty = True

    def tree_replaced(self, root: VaultNode) -> None:
        self._dirty = True

    def expansion_restored(self, paths: Set[str]) -> None:
        self._dirty = True

    # Layout

    def create_layout(self) -> List[List[Any]]:
        """Create the main window layout.

        Returns:
            FreeSimpleGUI layout
        """
        left_pane = [
            [
                sg.Frame(
                    "Vault",
                    [
                        [
                            sg.Tree(
                                data=sg.TreeData(),
                                headings=[],
                                col0_heading="Name",
                                col0_width=40,
                                num_rows=22,
                                key=TREE_KEY,
                                enable_events=True,
                                select_mode=sg.TABLE_SELECT_MODE_BROWSE,
                                expand_x=True,
                                expand_y=True,
                            )
                        ],
                        [
                            sg.Button("New Folder", key="-NEW_FOLDER-"),
                            sg.Button("Import PDFs...", key="-IMPORT-"),
                            sg.Button("Rename", key="-RENAME-"),
                            sg.Button("Delete", key="-DELETE-"),
                            sg.Button("Refresh", key="-REFRESH-"),
                        ],
                    ],
                    expand_x=True,
                    expand_y=True,
                )
            ]
        ]

        right_pane = [
            [
                sg.Frame(
                    "Document",
                    [
                        [
                            sg.Multiline(
                                "Select a PDF to see its details.",
                                size=(45, 14),
                                key="-INFO-",
                                disabled=True,
                                expand_x=True,
                                expand_y=True,
                            )
                        ]
                    ],
                    expand_x=True,
                    expand_y=True,
                )
            ],
            [
                sg.Frame(
                    "Activity Log",
                    [
                        [
                            sg.Multiline(
                                size=(45, 8),
                                key="-LOG-",
                                disabled=True,
                                autoscroll=True,
                                expand_x=True,
                            )
                        ],
                        [sg.Text("Ready", key="-STATUS-", size=(40, 1))],
                    ],
                    expand_x=True,
                )
            ],
        ]

        return [
            [
                sg.Column(left_pane, expand_x=True, expand_y=True),
                sg.Column(right_pane, expand_x=True, expand_y=True),
            ],
            [sg.Push(), sg.Button("Exit", key="-EXIT-")],
        ]

    # Helpers

    def log_message(self, message: str) -> None:
        """Add a message to the GUI log.

        Args:
            message: Message to display
        """
        if self.window:
            self.window["-LOG-"].print(message)
            self.window["-STATUS-"].update(message[:60])

    def report_error(self, title: str, error: object) -> None:
        self.log_message(f"{title}: {error}")
        sg.popup_error(f"{title}:\n{error}", title="Error")

    def selected_node(self) -> Optional[VaultNode]:
        if self.selected_path is None:
            return None
        return self.sync.tree.find_node(self.selected_path)

    def node_at(self, y: int) -> Optional[VaultNode]:
        """Node under the pointer, from a widget-relative y coordinate."""
        tree = self.window[TREE_KEY]
        item_id = tree.Widget.identify_row(y)
        if not item_id:
            return None
        path = tree.IdToKey.get(item_id)
        return self.sync.tree.find_node(path) if path else None

    def render_tree(self) -> None:
        """Redraw the tree widget from the domain tree."""
        tree = self.window[TREE_KEY]
        tree.update(values=build_tree_data(self.sync.tree.root))

        for node in self.sync.tree.walk():
            if node.is_directory and node.expanded and node.path in tree.KeyToID:
                tree.Widget.item(tree.KeyToID[node.path], open=True)

        if self.selected_path in tree.KeyToID:
            item_id = tree.KeyToID[self.selected_path]
            tree.Widget.selection_set(item_id)
            tree.Widget.see(item_id)
        else:
            self.selected_path = None

        self._dirty = False
        self.refresh_info()

    def refresh_info(self) -> None:
        """Show details for the selected PDF, or a placeholder."""
        node = self.selected_node()
        if node is None or node.is_directory:
            self.window["-INFO-"].update("Select a PDF to see its details.")
            return

        info = get_file_info(node.path, self.config)
        lines = [
            info["filename"],
            f"Size: {format_size(info['size'])}",
            f"Pages: {info['pages']}",
        ]
        if info["error"]:
            lines.append(f"Error: {info['error']}")
        elif info["excerpt"]:
            lines.extend(["", info["excerpt"]])
        self.window["-INFO-"].update("\n".join(lines))

    # Actions

    def handle_new_folder(self) -> None:
        try:
            node = self.sync.create_folder(self.selected_node())
            self.log_message(f"Created folder {node.name}")
        except VaultError as e:
            self.report_error("Error during new folder creation", e)

    def handle_import(self) -> None:
        file_paths = sg.popup_get_file(
            "Select PDF files to import:",
            title="Import PDF in your vault",
            file_types=(("PDF Files", "*.pdf"),),
            multiple_files=True,
            no_window=True,
        )
        if not file_paths:
            return

        # Convert single file path to list
        if isinstance(file_paths, str):
            file_paths = [p for p in file_paths.split(";") if p]

        report = self.sync.import_files(self.selected_node(), list(file_paths))
        self.log_message(
            f"Imported {len(report.inserted)} file(s) into {report.destination.name}"
        )
        if report.failures:
            details = "\n".join(str(e) for e in report.failures)
            self.report_error("Some files could not be imported", details)

    def handle_rename(self) -> None:
        node = self.selected_node()
        if node is None or node.is_root:
            return

        new_name = sg.popup_get_text(
            "New name:", title="Rename", default_text=node.name
        )
        if new_name is None:
            return

        old_name = node.name
        try:
            if self.sync.rename(node, new_name):
                self.selected_path = node.path
                self.log_message(f"Renamed {old_name} to {node.name}")
        except VaultError as e:
            self.report_error("Error during rename", e)

    def handle_delete(self) -> None:
        node = self.selected_node()
        if node is None or node.is_root:
            return

        answer = sg.popup_yes_no(
            f"Do you want delete: '{node.name}'?\nThis operation cannot be undone.",
            title="Confirm?",
        )
        if answer != "Yes":
            return

        try:
            self.sync.delete(node)
            self.log_message(f"Deleted {node.name}")
        except VaultError as e:
            self.report_error("Error during deletion", e)

    def handle_refresh(self) -> None:
        try:
            self.sync.reload()
        except VaultAccessError as e:
            self.report_error("Cannot read the vault", e)
            return
        for warning in self.sync.last_scan_warnings:
            self.log_message(f"Warning: {warning}")
        self.log_message("Vault reloaded")

    def handle_drop(self, source: VaultNode, folder: VaultNode) -> None:
        try:
            if self.sync.move(source, folder):
                self.selected_path = None
                self.log_message(f"Moved {source.name} to {folder.name}")
        except VaultError as e:
            self.report_error("Drag & drop error", e)

    def handle_tree_event(self, event: str, values: dict) -> None:
        """Dispatch selection, expansion and pointer events of the tree."""
        tree = self.window[TREE_KEY]

        if event == TREE_KEY:
            selection = values.get(TREE_KEY) or []
            self.selected_path = selection[0] if selection else None
            self.refresh_info()
            return

        if event in (TREE_KEY + "+OPEN", TREE_KEY + "+CLOSE"):
            path = tree.IdToKey.get(tree.Widget.focus())
            node = self.sync.tree.find_node(path) if path else None
            if node is not None:
                node.expanded = event.endswith("+OPEN")
            return

        pointer = tree.user_bind_event
        if event == TREE_KEY + "+PRESS":
            self.gesture.press(self.node_at(pointer.y), pointer.x, pointer.y)
        elif event == TREE_KEY + "+MOTION":
            self.gesture.motion(pointer.x, pointer.y)
        elif event == TREE_KEY + "+RELEASE":
            request = self.gesture.drop(self.node_at(pointer.y))
            if request is not None:
                self.handle_drop(*request)

    # Main loop

    def open(self) -> bool:
        """Open the configured vault unless an engine was supplied.

        Returns:
            True if the vault is ready, False otherwise
        """
        if self.sync is not None:
            return True
        try:
            self.sync = open_vault(self.config)
            return True
        except (OSError, VaultAccessError) as e:
            log_error("Failed to open vault", e, self.config)
            sg.popup_error(f"Cannot open the vault at {self.config.vault_path}:\n{e}")
            return False

    def run(self) -> None:
        """Run the complete application."""
        if not self.open():
            return

        self.sync.tree.add_listener(self)

        self.window = sg.Window(
            f"PDFVault - {Path(self.sync.vault_root).name}",
            self.create_layout(),
            size=(1000, 650),
            resizable=True,
            finalize=True,
        )

        tree = self.window[TREE_KEY]
        tree.bind("<<TreeviewOpen>>", "+OPEN")
        tree.bind("<<TreeviewClose>>", "+CLOSE")
        tree.bind("<ButtonPress-1>", "+PRESS")
        tree.bind("<B1-Motion>", "+MOTION")
        tree.bind("<ButtonRelease-1>", "+RELEASE")

        self.render_tree()
        for warning in self.sync.last_scan_warnings:
            self.log_message(f"Warning: {warning}")

        handlers = {
            "-NEW_FOLDER-": self.handle_new_folder,
            "-IMPORT-": self.handle_import,
            "-RENAME-": self.handle_rename,
            "-DELETE-": self.handle_delete,
            "-REFRESH-": self.handle_refresh,
        }

        while True:
            event, values = self.window.read()

            if event in (sg.WIN_CLOSED, "-EXIT-"):
                break

            if isinstance(event, str) and event.startswith(TREE_KEY):
                self.handle_tree_event(event, values)
            elif event in handlers:
                handlers[event]()

            if self._dirty:
                self.render_tree()

        self.sync.tree.remove_listener(self)
        self.window.close()


def create_gui(config: Optional[Config] = None) -> PDFVaultGUI:
    """Create and return a PDFVault GUI instance.

    Args:
        config: Configuration object, uses defaults if None

    Returns:
        PDFVaultGUI instance
    """
    return PDFVaultGUI(config)
