# Common language: Environment/ops probe that surfaces library versions, storage and which keys are present.
# Use this before/after upgrades to confirm no silent drift.

from fastapi import APIRouter, Depends
from .deps import get_services
from ..core.container import Services
import sys, importlib

router = APIRouter(tags=["health"])

def _ver(modname: str) -> str:
    try:
        m = importlib.import_module(modname)
        return getattr(m, "__version__", "unknown")
    except ImportError:
        return "not-installed"

@router.get("/healthz")
def healthz(services: Services = Depends(get_services)):
    cfg = services.settings
    return {
        "status": "ok",
        "python": sys.version.split()[0],
        "versions": {
            "fastapi": _ver("fastapi"),
            "uvicorn": _ver("uvicorn"),
            "pydantic_settings": _ver("pydantic_settings"),
            "httpx": _ver("httpx"),
            "selectolax": _ver("selectolax"),
            "openai": _ver("openai"),
            "sqlalchemy": _ver("sqlalchemy"),
        },
        "config": {
            "database": services.engine.url.render_as_string(hide_password=True),
            "search_max_results": cfg.search_max_results,
            "openai_model": cfg.openai_model,
        },
        "env_keys_present": {
            "SERP_API_KEY": bool(cfg.serpapi_api_key),
            "OPENAI_API_KEY": bool(cfg.openai_api_key),
        },
        "jobs_running": len(services.jobs),
        "summarizer_state": services.summarizer.state.value,
    }
