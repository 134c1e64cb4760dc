# Application services: orchestration, precompute, profile and catalog writes
from match_engine.services.orchestrator import Orchestrator, OrchestratorConfig
from match_engine.services.precompute import PrecomputeQueue
from match_engine.services.program_catalog import ProgramCatalogService
from match_engine.services.student_profiles import PreferenceLimits, StudentProfileService

__all__ = [
    "Orchestrator",
    "OrchestratorConfig",
    "PrecomputeQueue",
    "ProgramCatalogService",
    "PreferenceLimits",
    "StudentProfileService",
]
