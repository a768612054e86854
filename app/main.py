import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.database import close_db, get_db, init_db
from app.routers import auth, intake, patients
from app.services.auth import AuthError, StaffLoginRequired
from app.services.patient_queries import fetch_problem_lookup
from app.services.relation_normalizer import build_lookup_map, validate_problem_aliases

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def check_problem_lookup() -> list[str]:
    """Log every family-history problem key the lookup table cannot resolve."""
    db = await get_db()
    lookup = build_lookup_map(await fetch_problem_lookup(db))
    missing = validate_problem_aliases(lookup)
    for key in missing:
        logger.warning("Family problem key %r has no family_problem_lookup row", key)
    return missing


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Clinic Intake...")
    await init_db()
    logger.info("Database initialized")
    await check_problem_lookup()
    yield
    await close_db()
    logger.info("Clinic Intake shut down")


app = FastAPI(
    title="Clinic Intake",
    description="Patient intake forms and staff patient records for a free clinic",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(StaffLoginRequired)
async def redirect_to_login(request: Request, exc: StaffLoginRequired):
    return RedirectResponse(exc.login_url, status_code=303)


@app.exception_handler(AuthError)
async def auth_error(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


app.include_router(intake.router)
app.include_router(patients.router)
app.include_router(auth.router)
app.include_router(auth.reset_link_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
