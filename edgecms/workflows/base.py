from typing import Any, ClassVar

from edgecms.context import AppContext
from edgecms.workflows.steps import StepRunner


class Workflow:
    """A named sequence of steps executed through a ``StepRunner``."""

    name: ClassVar[str]

    def __init__(self, context: AppContext):
        self.context = context

    @property
    def label(self) -> str:
        return type(self).__name__

    async def run(self, params: dict[str, Any], step: StepRunner) -> Any:
        raise NotImplementedError
