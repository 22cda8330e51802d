import os
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).parent / ".env")

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.services.errors import WorkflowError, FieldValidationError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Contractor CMS API")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Register routers ---
from app.routers.auth import router as auth_router
from app.routers.api_keys import router as api_keys_router
from app.routers.organizations import router as organizations_router
from app.routers.suppliers import router as suppliers_router
from app.routers.contractors import router as contractors_router
from app.routers.contracts import router as contracts_router
from app.routers.projects import router as projects_router
from app.routers.engagements import router as engagements_router
from app.routers.timesheets import router as timesheets_router
from app.routers.invoices import router as invoices_router
from app.routers.analytics import router as analytics_router

app.include_router(auth_router)
app.include_router(api_keys_router)
app.include_router(organizations_router)
app.include_router(suppliers_router)
app.include_router(contractors_router)
app.include_router(contracts_router)
app.include_router(projects_router)
app.include_router(engagements_router)
app.include_router(timesheets_router)
app.include_router(invoices_router)
app.include_router(analytics_router)


# --- Error mapping ---

@app.exception_handler(FieldValidationError)
async def field_validation_error_handler(request: Request, exc: FieldValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": [{"loc": ["body", exc.field], "msg": exc.message, "type": "value_error"}]},
    )


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content={"detail": "Conflicts with an existing record"})


@app.get("/health")
def health():
    return {"ok": True}
