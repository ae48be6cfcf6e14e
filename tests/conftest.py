import json
import os
from itertools import count

# Settings are read at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENABLE_FAKE_PAYMENTS"] = "true"
for key in (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
):
    os.environ[key] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import bodyid.model_registry  # noqa: F401
from bodyid.aisystem.analysis_client import get_analysis_client
from bodyid.aisystem.ocr_client import get_ocr_client
from bodyid.aisystem.response_normalizer import normalize_analysis
from bodyid.database.connection import Base, get_db
from bodyid.helpers.errors import SignatureInvalid, UpstreamFailure
from bodyid.integrations.payment_gateway import PaymentEvent, get_payment_gateway
from bodyid.integrations.storage_client import StoredFile, get_storage_client
from bodyid.main import app
from helpers import auth, tomorrow


# ============================================================
# ✅ Fakes for external services
# ============================================================
class FakePaymentGateway:
    """Accepts the signature 'valid'; the payload is PaymentEvent fields as JSON."""

    VALID_SIGNATURE = "valid"

    def __init__(self):
        self.intents = []

    def create_intent(self, appointment_id: int, amount: float) -> str:
        self.intents.append((appointment_id, amount))
        return f"pi_test_{appointment_id}_secret"

    def parse_event(self, payload: bytes, signature):
        if signature != self.VALID_SIGNATURE:
            raise SignatureInvalid("Webhook Error: bad signature")
        return PaymentEvent(**json.loads(payload))


class FakeStorage:
    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail = False
        self._ids = count(1)

    async def upload(self, data: bytes, folder: str) -> StoredFile:
        if self.fail:
            raise UpstreamFailure("File storage error: unavailable")
        public_id = f"{folder}/file-{next(self._ids)}"
        self.uploads.append((folder, data))
        return StoredFile(url=f"https://files.test/{public_id}", public_id=public_id)

    async def delete(self, public_id: str) -> None:
        if self.fail:
            raise UpstreamFailure("File storage error: unavailable")
        self.deleted.append(public_id)


class FakeOCR:
    def __init__(self, text: str = "Hemoglobin 10.2 g/dL LOW\nGlucose 180 mg/dL HIGH"):
        self.text = text
        self.fail = False

    async def extract_text(self, image_bytes: bytes) -> str:
        if self.fail:
            raise UpstreamFailure("OCR extraction failed: provider down", suggestion="Try again")
        return self.text


class FakeAnalysis:
    def __init__(self):
        self.fail = False
        self.safety_calls = []

    async def analyze_report(self, text: str) -> dict:
        if self.fail:
            raise UpstreamFailure("AI analysis failed: quota exceeded")
        return normalize_analysis({"summary": "Mild anemia and raised glucose", "findings": ["Low hemoglobin"]})

    async def prescription_safety(self, prescription_text: str, history_text: str) -> str:
        self.safety_calls.append((prescription_text, history_text))
        return "Please confirm this prescription with your doctor."


# ============================================================
# ✅ Database and app
# ============================================================
@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def ocr() -> FakeOCR:
    return FakeOCR()


@pytest.fixture
def analysis() -> FakeAnalysis:
    return FakeAnalysis()


@pytest.fixture
async def client(session_factory, gateway, storage, ocr, analysis):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_storage_client] = lambda: storage
    app.dependency_overrides[get_ocr_client] = lambda: ocr
    app.dependency_overrides[get_analysis_client] = lambda: analysis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================
# ✅ Account helpers
# ============================================================
_seq = count(1)


@pytest.fixture
def register_patient(client):
    async def _register(**overrides) -> dict:
        n = next(_seq)
        payload = {
            "role": "patient",
            "name": f"Patient {n}",
            "email": f"patient{n}@clinicmail.com",
            "phone": "555-0100",
            "password": "secret123",
            "national_id": f"NID-{n:05d}",
        }
        payload.update(overrides)
        response = await client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def register_doctor(client):
    async def _register(**overrides) -> dict:
        n = next(_seq)
        payload = {
            "role": "doctor",
            "name": f"Dr. {n}",
            "email": f"doctor{n}@clinicmail.com",
            "password": "secret123",
            "license_id": f"LIC-{n:05d}",
            "specialty": "General Practice",
            "consultation_fee": 50,
        }
        payload.update(overrides)
        response = await client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def book(client):
    async def _book(patient: dict, doctor: dict, **overrides) -> dict:
        payload = {"doctor_id": doctor["user"]["id"], "scheduled_at": tomorrow()}
        payload.update(overrides)
        response = await client.post(
            "/api/appointments", json=payload, headers=auth(patient["access_token"])
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _book
