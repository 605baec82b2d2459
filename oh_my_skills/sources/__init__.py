from oh_my_skills.sources.models import (
    Bundle,
    BundleFile,
    SearchSkill,
    SourceDescriptor,
    SourceKind,
)

__all__ = [
    "Bundle",
    "BundleFile",
    "SearchSkill",
    "SourceDescriptor",
    "SourceKind",
]
