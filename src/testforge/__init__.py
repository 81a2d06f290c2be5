"""testforge - NUnit/Moq test skeleton generator for C# code."""

__version__ = "0.1.0"

from testforge.pipeline.generation_pipeline import GenerationPipeline, run_all
from testforge.synthesis.engine import SynthesisEngine, generate
from testforge.synthesis.models import GeneratedTestUnit

__all__ = [
    "GeneratedTestUnit",
    "GenerationPipeline",
    "SynthesisEngine",
    "generate",
    "run_all",
]
