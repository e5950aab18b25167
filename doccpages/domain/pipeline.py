"""
Pipeline run domain objects for doccpages.

A run moves through a fixed sequence of stages. The first failure moves it
into FAILED, which it never leaves.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class PipelineStage(Enum):
    """Stages of a single pipeline run."""
    START = "start"
    DETECTING = "detecting"
    BUILDING = "building"
    PACKAGING = "packaging"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


# Strictly linear: each stage has exactly one successor.
STAGE_ORDER = [
    PipelineStage.START,
    PipelineStage.DETECTING,
    PipelineStage.BUILDING,
    PipelineStage.PACKAGING,
    PipelineStage.PUBLISHING,
    PipelineStage.DONE,
]


class StageStatus(Enum):
    """Outcome of an individual stage."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class StageResult:
    """What happened during one stage."""
    stage: PipelineStage
    status: StageStatus
    message: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'stage': self.stage.value,
            'status': self.status.value,
        }
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        if self.metadata:
            result.update(self.metadata)
        return result


@dataclass
class PipelineReport:
    """
    Summary of a pipeline run.

    Tracks the current stage and the ordered results of every stage
    that ran (or was skipped).
    """
    stage: PipelineStage = PipelineStage.START
    results: List[StageResult] = field(default_factory=list)
    exit_code: int = 0

    @property
    def failed(self) -> bool:
        return self.stage == PipelineStage.FAILED

    @property
    def success(self) -> bool:
        """True once the run reached DONE without failures."""
        return self.stage == PipelineStage.DONE

    def advance(self, stage: PipelineStage) -> None:
        """
        Move to the next stage.

        Raises:
            ValueError: If ``stage`` is not the immediate successor of the
                current stage, or the run has already failed.
        """
        if self.failed:
            raise ValueError("Pipeline run has already failed")
        if stage == PipelineStage.FAILED:
            self.stage = stage
            return
        current = STAGE_ORDER.index(self.stage)
        if current + 1 >= len(STAGE_ORDER) or STAGE_ORDER[current + 1] != stage:
            raise ValueError(
                f"Invalid stage transition: {self.stage.value} -> {stage.value}"
            )
        self.stage = stage

    def add(self, result: StageResult) -> None:
        """Record a stage result. A failed result fails the whole run."""
        self.results.append(result)
        if result.status == StageStatus.FAILED and not self.failed:
            self.stage = PipelineStage.FAILED

    def result_for(self, stage: PipelineStage) -> Optional[StageResult]:
        for result in self.results:
            if result.stage == stage:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'summary',
            'stage': self.stage.value,
            'success': self.success,
            'exit_code': self.exit_code,
            'stages': [r.to_dict() for r in self.results],
        }
