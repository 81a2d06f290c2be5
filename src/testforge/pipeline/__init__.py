"""Generation pipeline package."""

from testforge.pipeline.generation_pipeline import GenerationPipeline, run_all
from testforge.pipeline.models import PipelineReport, PipelineStage, StageFailure

__all__ = [
    "GenerationPipeline",
    "run_all",
    "PipelineReport",
    "PipelineStage",
    "StageFailure",
]
