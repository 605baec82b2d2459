from oh_my_skills.config.document import ConfigDocument, load_document, save_document
from oh_my_skills.config.json_document import JsonConfigDocument
from oh_my_skills.config.toml_document import TomlConfigDocument

__all__ = [
    "ConfigDocument",
    "JsonConfigDocument",
    "TomlConfigDocument",
    "load_document",
    "save_document",
]
