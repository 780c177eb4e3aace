# folders.py
# -----------------------------------------------------------------------------
# Walk an Outlook folder hierarchy (NameSpace or Folder) into Folder nodes:
#   - depth-first, children in the order Outlook exposes them
#   - per-node direct item count plus recursive total
#   - unreadable properties keep their zero value; unreachable sub-folders
#     are logged and skipped
# -----------------------------------------------------------------------------

import logging
import weakref

from .errors import FolderNotFoundError
from .items import read_prop

logger = logging.getLogger(__name__)


class Folder:
    """One node of the mailbox tree. `parent` is a weak back-reference."""

    def __init__(self, name="", path="", handle=None, parent=None):
        self.entry_id = ""
        self.name = name
        self.path = path
        self.num_folders = 0
        self.num_items = 0
        self.total_items = 0
        self.children = []
        self.store = ""
        self.store_path = ""
        self.default_item_type = 0
        self.default_message_class = ""
        self.klass = 0
        self.handle = handle
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    def __repr__(self):
        return f"Folder({self.name!r}, path={self.path!r}, total_items={self.total_items})"


def _read_store(folder, handle):
    try:
        store = handle.Store
    except Exception:
        return
    if store is None:
        return
    folder.store = read_prop(store, "DisplayName", "")
    folder.store_path = read_prop(store, "FilePath", "")


def _count_items(handle):
    try:
        return int(handle.Items.Count)
    except Exception:
        return 0


def build_folder_tree(root, parent=None):
    """
    Build the Folder tree under `root`.
    Returns (flat list of every node, root inclusive, in depth-first order;
    the root Folder with children populated).
    """
    node = Folder(read_prop(root, "Name", ""), read_prop(root, "FolderPath", ""),
                  handle=root, parent=parent)
    flat = [node]

    node.entry_id = read_prop(root, "EntryID", "")
    node.klass = read_prop(root, "Class", 0)
    node.default_item_type = read_prop(root, "DefaultItemType", 0)
    node.default_message_class = read_prop(root, "DefaultMessageClass", "")
    _read_store(node, root)

    try:
        subfolders = root.Folders
        nfolders = int(subfolders.Count)
    except Exception as e:
        logger.warning("Failed to list sub-folders of %s: %s", node.path or node.name, e)
        subfolders, nfolders = None, 0
    node.num_folders = nfolders

    for i in range(1, nfolders + 1):
        try:
            sub = subfolders.Item(i)
        except Exception as e:
            logger.warning("Failed to get sub-folder %d of %s: %s", i, node.path or node.name, e)
            continue
        if sub is None:
            logger.warning("Sub-folder %d of %s is empty", i, node.path or node.name)
            continue
        sub_flat, child = build_folder_tree(sub, node)
        flat.extend(sub_flat)
        node.children.append(child)
        node.total_items += child.total_items

    node.num_items = _count_items(root)
    node.total_items += node.num_items
    return flat, node


def find_folder(folders, name):
    """First folder (depth-first order) whose display name is `name`."""
    for f in folders:
        if f.name == name:
            return f
    raise FolderNotFoundError(name)


def format_folder_listing(folders):
    for i, f in enumerate(folders):
        yield f"{i}: {f.name} {f.path} ({f.total_items})"
