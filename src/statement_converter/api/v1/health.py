from fastapi import APIRouter, Depends

from statement_converter.api.deps import get_tools
from statement_converter.config import settings
from statement_converter.extraction.external import ToolAvailability

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(tools: ToolAvailability = Depends(get_tools)):
    """Basic health check with external tool availability."""
    return {"status": "ok", "version": settings.version, "tools": tools.as_dict()}
