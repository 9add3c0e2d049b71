"""Bridge services."""
from .crm_card import CrmCardBuilder
from .file_service import FileContent, FileService, HTMLContentError

__all__ = ["FileService", "FileContent", "HTMLContentError", "CrmCardBuilder"]
