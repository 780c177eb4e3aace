# errors.py
# -----------------------------------------------------------------------------
# Run-level faults. Per-item faults never raise; they are reported through
# extract.Outcome and handled by the export engine.
# -----------------------------------------------------------------------------


class ExportError(Exception):
    """Base class for faults that abort the whole run."""


class InitializationError(ExportError):
    """COM/MAPI, the converter session or Outlook could not be started."""


class FolderNotFoundError(ExportError):
    def __init__(self, name):
        super().__init__(f"Folder {name} not found")
        self.name = name
