"""
Sanctuary API Service Entrypoint

FastAPI application for the business hub. Includes all API routers and
startup initialization (logging, schema, demo seed).
"""

from fastapi import FastAPI
import os
import logging

from sanctuary.api import session, directory, proposals, invoices, support, classes, operations, drive, chat
from sanctuary.api import waivers, dashboard
from sanctuary.config import API_BIND_HOST, API_PORT, LOG_LEVEL, LOG_FILE
from sanctuary.database import init_db
from sanctuary.startup_profile import StartupProfile, validate_api_profile
from shared.logging_config import setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Sadaya Sanctuary Business Hub")

# Include all API routers
app.include_router(session.router)
app.include_router(directory.router)
app.include_router(proposals.router)
app.include_router(invoices.router)
app.include_router(support.router)
app.include_router(classes.router)
app.include_router(operations.router)
app.include_router(drive.router)
app.include_router(chat.router)
app.include_router(waivers.router)
app.include_router(dashboard.router)


@app.on_event("startup")
def startup_init():
    """Configure logging, validate the bind profile and initialize the database"""
    setup_logging("API", level=LOG_LEVEL, log_file=LOG_FILE)

    startup_port = int(os.getenv("SADAYA_API_PORT", str(API_PORT)))
    startup_host = str(os.getenv("SADAYA_API_HOST", API_BIND_HOST))
    validate_api_profile(StartupProfile(role="API", host=startup_host, port=startup_port))

    init_db()
    logger.info("Sanctuary API startup complete")


@app.get("/")
def root():
    return {
        "service": "sanctuary-api",
        "message": "Sadaya Sanctuary business hub API running",
    }


@app.get("/health")
def health():
    return {"status": "ok"}


def main():
    import uvicorn

    host = os.getenv("SADAYA_API_HOST", API_BIND_HOST)
    port = int(os.getenv("SADAYA_API_PORT", str(API_PORT)))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
