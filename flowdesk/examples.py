from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import ValidationError

from .config import app_config
from .models import Workflow

logger = logging.getLogger(__name__)


class ExampleCatalog:
    """Premade workflows offered by the editor's example menu."""

    def __init__(self, workflows: Iterable[Workflow] = ()) -> None:
        self._workflows: dict[str, Workflow] = {}
        for workflow in workflows:
            if workflow.id:
                self._workflows[workflow.id] = workflow

    @classmethod
    def from_records(cls, records: Iterable[dict[str, object]]) -> ExampleCatalog:
        workflows: list[Workflow] = []
        for record in records:
            try:
                workflows.append(Workflow.model_validate(record))
            except ValidationError:
                logger.warning("Skipping invalid example workflow %r", record.get("id"), exc_info=True)
        return cls(workflows)

    def get(self, example_id: str) -> Workflow | None:
        return self._workflows.get(example_id)

    def summaries(self) -> list[dict[str, object]]:
        return [
            {
                "id": workflow.id,
                "name": workflow.name,
                "description": workflow.description,
                "nodeCount": len(workflow.nodes),
            }
            for workflow in self._workflows.values()
        ]

    def __len__(self) -> int:
        return len(self._workflows)

    def __contains__(self, example_id: object) -> bool:
        return example_id in self._workflows


def load_catalog(records: Iterable[dict[str, object]] | None = None) -> ExampleCatalog:
    if records is None:
        records = app_config.load_examples()
    return ExampleCatalog.from_records(records)
