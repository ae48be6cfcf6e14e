# bodyid/main.py
from dotenv import load_dotenv

load_dotenv()

import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.aiconfig import ai_settings
from config.appconfig import settings
from config.integrationsconfig import integration_settings

# Apply logging configuration
logging.config.dictConfig(settings.LOGGING_CONFIG)

# Import routers
from bodyid.aisystem.analysis_client import build_analysis_client
from bodyid.aisystem.ocr_client import build_ocr_client
from bodyid.aisystem.routes import router as ai_router
from bodyid.database.connection import create_tables
from bodyid.helpers.errors import register_exception_handlers
from bodyid.integrations.payment_gateway import build_payment_gateway
from bodyid.integrations.storage_client import build_storage_client
from bodyid.system_services.appointment_routes import router as appointment_router
from bodyid.system_services.doctor_routes import directory_router as doctors_router
from bodyid.system_services.doctor_routes import router as doctor_router
from bodyid.system_services.history_routes import router as history_router
from bodyid.system_services.payment_routes import router as payment_router
from bodyid.system_services.rating_routes import router as rating_router
from bodyid.system_services.record_routes import router as record_router
from bodyid.system_services.upload_routes import router as upload_router
from bodyid.users.auth_routers import router as auth_router

logger = logging.getLogger("bodyid.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await create_tables()
    logger.info("=" * 79)
    logger.info(f" 🚀 Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")
    logger.info(f" ✅ OCR Provider: {ai_settings.OCR_PROVIDER} - {ai_settings.current_ocr_model}"
                f" ({'configured' if app.state.ocr_client else 'NOT configured'})")
    logger.info(f" ✅ AI Analysis: {'configured' if app.state.analysis_client else 'fallback heuristic only'}")
    logger.info(f" ✅ Payments: {'stripe' if app.state.payment_gateway else 'processor disabled'}")
    logger.info(f" ✅ Demo payments: {'ON' if settings.fake_payments_enabled else 'OFF'}")
    logger.info(f" ✅ File storage: {'cloudinary' if app.state.storage_client else 'disabled'}")
    logger.info("=" * 79)
    yield
    # Shutdown
    logger.info("👋 Shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    description="Telemedicine backend: patient identity, appointments, payments, ratings and AI report analysis",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# External-service clients, built once; None when unconfigured
app.state.payment_gateway = build_payment_gateway(integration_settings)
app.state.storage_client = build_storage_client(integration_settings)
app.state.ocr_client = build_ocr_client(ai_settings)
app.state.analysis_client = build_analysis_client(ai_settings)

# Include routers with prefixes
app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(appointment_router, prefix="/api/appointments", tags=["Appointments"])
app.include_router(payment_router, prefix="/api/payments", tags=["Payments"])
app.include_router(rating_router, prefix="/api/ratings", tags=["Ratings"])
app.include_router(record_router, prefix="/api/records", tags=["Medical Records"])
app.include_router(history_router, prefix="/api/patient/history", tags=["Medical History"])
app.include_router(doctor_router, prefix="/api/doctor", tags=["Doctor Workspace"])
app.include_router(doctors_router, prefix="/api/doctors", tags=["Doctors"])
app.include_router(upload_router, prefix="/api/upload", tags=["Uploads"])
app.include_router(ai_router, prefix="/api/ai", tags=["AI Doctor"])


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.APP_NAME}"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bodyid.main:app", host="0.0.0.0", port=8000, reload=True)
