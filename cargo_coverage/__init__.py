"""Instrumented cargo test runs and grcov HTML coverage reports."""

from .config import ConfigError, CoverageConfig, load_config
from .preflight import PreflightFailure, Requirement, RequirementKind, run_preflight
from .pipeline import PipelineResult, StepResult, run_pipeline
from .cli import run_coverage

__all__ = [
    "ConfigError",
    "CoverageConfig",
    "load_config",
    "PreflightFailure",
    "Requirement",
    "RequirementKind",
    "run_preflight",
    "PipelineResult",
    "StepResult",
    "run_pipeline",
    "run_coverage",
]
