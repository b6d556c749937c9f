"""FastAPI dependency providers.

Settings are loaded once per process; the services built from them are
shared for the life of the app. Tests swap them via
``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from .config import WorkspaceSettings, load_settings
from .services.case_service import CaseService
from .services.gate_validator import GateValidator
from .services.llm_client import LLMClient
from .services.roi_calculator import RoiCalculator


@lru_cache(maxsize=1)
def get_settings() -> WorkspaceSettings:
    return load_settings()


@lru_cache(maxsize=1)
def _case_service() -> CaseService:
    return CaseService(get_settings())


def get_roi_calculator(settings: WorkspaceSettings = Depends(get_settings)) -> RoiCalculator:
    return RoiCalculator(settings)


def get_gate_validator(settings: WorkspaceSettings = Depends(get_settings)) -> GateValidator:
    return GateValidator(settings)


def get_case_service() -> CaseService:
    return _case_service()


def get_llm_client(settings: WorkspaceSettings = Depends(get_settings)) -> LLMClient:
    return LLMClient(settings)
