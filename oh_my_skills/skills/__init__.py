from oh_my_skills.skills.archive import SkillArchive, extract_zip
from oh_my_skills.skills.models import (
    PreparedSkill,
    SkillFile,
    SkillInfo,
    SkillMetadata,
)
from oh_my_skills.skills.store import SkillStore

__all__ = [
    "PreparedSkill",
    "SkillArchive",
    "SkillFile",
    "SkillInfo",
    "SkillMetadata",
    "SkillStore",
    "extract_zip",
]
