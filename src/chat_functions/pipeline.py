"""
Sequential composition of asynchronous callables.

A 'Pipeline' runs its stages one after another, each stage receiving the fully
resolved output of the previous one. The first failing stage ends the run: its
exception propagates unchanged and the remaining stages never start.
Cancelling the awaiting task cancels whichever stage is in flight.

    translate = service.prompt_as_function("translate-into-chinese")
    send_email = service.prompt_as_function("send-email", "send_email")
    result = await chain(translate, send_email)(request_text)
"""

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from chat_functions.errors import ConfigurationError

Stage = Callable[[Any], Awaitable[Any]]


class Pipeline:
    """
    An ordered, immutable sequence of async stages.

    Attributes:
        stages: The stages in execution order.
    """

    def __init__(self, stages: tuple[Stage, ...]) -> None:
        if not stages:
            raise ConfigurationError("A pipeline needs at least one stage")
        self.stages = stages

    def then(self, stage: Stage) -> "Pipeline":
        """Return a new pipeline with 'stage' appended."""
        return Pipeline((*self.stages, stage))

    async def __call__(self, value: Any) -> Any:
        for index, stage in enumerate(self.stages):
            try:
                value = await stage(value)
            except Exception as exc:
                logger.debug(f"Pipeline stopped at stage {index} ({stage!r}): {exc!r}")
                raise
        return value


def chain(*stages: Stage) -> Pipeline:
    return Pipeline(stages)
