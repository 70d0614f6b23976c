"""
Per-file transformation and run orchestration.

Oracle clients, prompt construction, output sanitizing, the attempt cycle
and the project orchestrator.
"""

from codeport.translator.attempt_cycle import TransformAttemptCycle
from codeport.translator.llm_client import (
    DeterministicFallbackClient,
    RemoteOracleClient,
    TransformationOracle,
    create_oracle_client,
)
from codeport.translator.orchestrator import ProjectTransformOrchestrator, run_project_transform
from codeport.translator.sanitizer import sanitize

__all__ = [
    "DeterministicFallbackClient",
    "ProjectTransformOrchestrator",
    "RemoteOracleClient",
    "TransformAttemptCycle",
    "TransformationOracle",
    "create_oracle_client",
    "run_project_transform",
    "sanitize",
]
