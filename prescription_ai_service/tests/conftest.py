import pytest

from app.schemas.models import Medication


@pytest.fixture(autouse=True)
def isolated_db(monkeypatch, tmp_path):
    db_path = tmp_path / "prescriptions.db"
    monkeypatch.setenv("PRESCRIPTION_DB_PATH", str(db_path))
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    return db_path


def med(name, dosage="500mg", frequency="6h", duration="3d", notes=None):
    return Medication(name=name, dosage=dosage, frequency=frequency, duration=duration, notes=notes)
