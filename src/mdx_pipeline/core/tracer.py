"""
Compilation Trace Logger.

Records the step-by-step execution of a compile:
1. Lifecycle Phases (Parse, Stage 1, transforms, Stage 2, Codegen).
2. Transform applications (which transform ran, whether it replaced the tree).
3. Tree Mutations (node counts before and after a stage).
4. Warnings recorded by transforms.

The output is a structured list of event dictionaries suitable for JSON
serialization. Each compile owns its own logger; nothing is shared between
compiles.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  TRANSFORM_APPLIED = "transform_applied"
  TREE_MUTATION = "tree_mutation"
  WARNING = "warning"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records compile events for inspection.
  Injected into the engine and the transform runner.
  """

  def __init__(self):
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []  # Stack of phase IDs

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase (e.g. 'Stage 1'). Returns Phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None

    self._events.append(
      TraceEvent(
        id=phase_id,
        type=TraceEventType.PHASE_START,
        timestamp=time.time(),
        description=name,
        parent_id=parent,
        metadata={"detail": description},
      )
    )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self) -> None:
    """Ends the current active phase."""
    if not self._active_phases:
      return

    phase_id = self._active_phases.pop()
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=TraceEventType.PHASE_END,
        timestamp=time.time(),
        description="End Phase",
        parent_id=phase_id,
      )
    )

  def log_transform(self, stage: str, index: int, name: str, replaced: bool) -> None:
    """Logs one completed transform."""
    self._log_simple(
      TraceEventType.TRANSFORM_APPLIED,
      f"Applied {name}",
      {"stage": stage, "index": index, "name": name, "replaced_tree": replaced},
    )

  def log_mutation(self, label: str, before: str, after: str) -> None:
    """Logs a tree transformation."""
    self._log_simple(TraceEventType.TREE_MUTATION, f"Transformed {label}", {"before": before, "after": after})

  def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Logs a non-fatal diagnostic, e.g. a transform message."""
    self._log_simple(TraceEventType.WARNING, message, {"level": "warning", **(details or {})})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]) -> None:
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]
