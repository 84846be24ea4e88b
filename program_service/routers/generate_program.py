import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..dependencies import get_db, get_program_generator
from ..metrics import PROGRAM_GENERATION_FAILURES_TOTAL
from ..schemas.program import GenerateProgramResponse
from ..services.llm_runtime import JsonGenerator
from ..services.program_generation import generate_program

router = APIRouter(tags=["Programs"])

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/vapi/generate-program", response_model=GenerateProgramResponse)
async def generate_program_endpoint(
    request: Request,
    db: Session = Depends(get_db),
    generator: JsonGenerator = Depends(get_program_generator),
):
    try:
        payload = await request.json()
        result = await generate_program(payload, generator=generator, db=db)
        if result.failure:
            return _error_response(result.failure.status_code, result.failure.message)
        # JSONResponse renders eagerly, so encoding errors land in the except below
        return JSONResponse(
            status_code=200,
            content={"success": True, "data": result.program.model_dump(mode="json")},
        )
    except Exception as exc:
        logger.exception("generate_program_unexpected_error")
        PROGRAM_GENERATION_FAILURES_TOTAL.labels(stage="unexpected").inc()
        return _error_response(500, str(exc))
