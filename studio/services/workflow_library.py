"""
Saved workflow snapshots.

Snapshots are deep copies, so editing the live graph after a save (or a
loaded graph after a load) never changes what is stored. When a file path
is given the library is mirrored to a JSON list on every change.
"""

import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import ValidationError

from studio.models.graph import Category, SavedWorkflow, WorkflowEdge, WorkflowNode

logger = logging.getLogger(__name__)


class WorkflowLibrary:
    def __init__(self, file_path: Optional[str] = None):
        self.file_path = file_path
        self.workflows: Dict[str, SavedWorkflow] = self._load_workflows()

    def _load_workflows(self) -> Dict[str, SavedWorkflow]:
        if not self.file_path or not os.path.exists(self.file_path):
            return {}
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                records = json.load(f)
            workflows = [SavedWorkflow.model_validate(r) for r in records]
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning("Ignoring unreadable workflow library %s: %s", self.file_path, e)
            return {}
        return {wf.id: wf for wf in workflows}

    def _save_workflows(self):
        if not self.file_path:
            return
        records = [wf.model_dump(mode="json") for wf in self.workflows.values()]
        # Temp file in the target directory, then an atomic swap
        directory = os.path.dirname(os.path.abspath(self.file_path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.file_path)
        except Exception:
            os.unlink(tmp_path)
            raise

    def save(
        self,
        name: str,
        category: Category,
        nodes: List[WorkflowNode],
        edges: List[WorkflowEdge],
    ) -> SavedWorkflow:
        """Store a snapshot of the given graph under a fresh id."""
        now = datetime.now(timezone.utc)
        workflow = SavedWorkflow(
            id=uuid.uuid4().hex,
            name=name,
            category=category,
            nodes=[n.model_copy(deep=True) for n in nodes],
            edges=[e.model_copy(deep=True) for e in edges],
            created_at=now,
            updated_at=now,
        )
        self.workflows[workflow.id] = workflow
        self._save_workflows()
        return workflow.model_copy(deep=True)

    def get(self, workflow_id: str) -> SavedWorkflow:
        """Deep copy of a stored snapshot. Raises KeyError for unknown ids."""
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            raise KeyError(f"Workflow '{workflow_id}' not found")
        return workflow.model_copy(deep=True)

    def list(self) -> List[SavedWorkflow]:
        return [wf.model_copy(deep=True) for wf in self.workflows.values()]

    def delete(self, workflow_id: str) -> SavedWorkflow:
        workflow = self.workflows.pop(workflow_id, None)
        if workflow is None:
            raise KeyError(f"Workflow '{workflow_id}' not found")
        self._save_workflows()
        return workflow
