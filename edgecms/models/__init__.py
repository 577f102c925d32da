from .language import Language
from .translation import Translation, TranslationKey
from .version import Version, VersionStatus
from .workflow import WorkflowInstance, WorkflowStatus, WorkflowStep

__all__ = [
    "Language",
    "Translation",
    "TranslationKey",
    "Version",
    "VersionStatus",
    "WorkflowInstance",
    "WorkflowStatus",
    "WorkflowStep",
]
