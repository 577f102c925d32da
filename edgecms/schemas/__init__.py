from .translation import (
    LanguageCreate,
    LanguageOut,
    TranslationOut,
    TranslationPush,
    TranslationPushResult,
    TranslationUpsert,
)
from .version import VersionOut, VersionUpdate
from .workflow import WorkflowInstanceOut

__all__ = [
    "LanguageCreate",
    "LanguageOut",
    "TranslationOut",
    "TranslationPush",
    "TranslationPushResult",
    "TranslationUpsert",
    "VersionOut",
    "VersionUpdate",
    "WorkflowInstanceOut",
]
