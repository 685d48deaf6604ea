from .archive import ArchiveResult, Screen, read_screen_archive
from .io import ImportedPayload, export_filename, export_payload, parse_payload
from .storage import JsonDirectoryScreenStore, MemoryScreenStore, ScreenRecord, ScreenStore

__all__ = [
    "ArchiveResult",
    "Screen",
    "read_screen_archive",
    "ImportedPayload",
    "export_filename",
    "export_payload",
    "parse_payload",
    "JsonDirectoryScreenStore",
    "MemoryScreenStore",
    "ScreenRecord",
    "ScreenStore",
]
