# -*- coding: utf-8 -*-
# lanprint/main.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from lanprint.api.routes import request_validation_handler, router as api_router
from lanprint.config import configure_logging, get_settings
from lanprint.core.printer_service import PrinterService

# 1) FastAPI instance
app = FastAPI(
    title="LAN Printer Service API",
    version="1.0.0",
    description="ESC/POS receipt printers over raw TCP (9100): probe, print, logo, cash drawer, autodetect",
)

# 2) CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3) Routes
app.include_router(api_router)
app.add_exception_handler(RequestValidationError, request_validation_handler)


@app.get("/")
def root():
    return {"message": "LAN Printer Service is running"}


# --- APP STATE: PrinterService (startup/shutdown) ---
@app.on_event("startup")
async def on_startup():
    settings = get_settings()
    configure_logging(settings)
    app.state.service = PrinterService(settings)  # type: ignore[attr-defined]
    logger.info("Printer service started")


@app.on_event("shutdown")
async def on_shutdown():
    svc: PrinterService = app.state.service  # type: ignore[attr-defined]
    svc.shutdown(wait=True)
    logger.info("Printer service stopped")


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("lanprint.main:app", host=s.host, port=s.port)
