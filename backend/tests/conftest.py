"""Pytest fixtures for the EnrollFlow backend.

Provides:
- Database session on an in-memory SQLite engine (fresh schema per test)
- Students, partners and admins
- Registration / document / payment deadline factories
- In-memory document store and recording notification sink
- FastAPI TestClient with the database and adapters overridden

Usage:
    def test_bulk_approve(db_session, tfa_registration, admin_user):
        ...
"""

import os

# Plain-text logs in test output
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from enrollflow.database import get_db
from enrollflow.dependencies import get_notifier, get_storage
from enrollflow.domain.documents.catalog import required_document_types
from enrollflow.domain.documents.document_status import UserDocumentStatus
from enrollflow.domain.registrations.status import OfferType, PaymentStatus, RegistrationStatus
from enrollflow.models import Base, Partner, PaymentDeadline, Registration, User, UserDocument

from fixtures.fakes import InMemoryObjectStorage, RecordingNotificationSink


# Single shared connection so the schema survives across sessions
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_engine, "connect")
def _sqlite_connect(dbapi_connection, connection_record):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs work with pysqlite
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@event.listens_for(test_engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture
def notifier() -> RecordingNotificationSink:
    return RecordingNotificationSink()


# =============================================================================
# Actors
# =============================================================================

@pytest.fixture
def student(db_session: Session) -> User:
    user = User(email="mario.rossi@example.com", first_name="Mario", last_name="Rossi", role="USER")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_student(db_session: Session) -> User:
    user = User(email="giulia.bianchi@example.com", first_name="Giulia", last_name="Bianchi", role="USER")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def admin_user(db_session: Session) -> User:
    user = User(email="discovery@example.com", first_name="Anna", last_name="Verdi", role="ADMIN")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def partner(db_session: Session) -> Partner:
    org = Partner(name="Accademia Partner", email="verifiche@partner.example.com")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture
def other_partner(db_session: Session) -> Partner:
    org = Partner(name="Altro Partner", email="info@altro.example.com")
    db_session.add(org)
    db_session.commit()
    return org


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_registration(db_session: Session, student: User, partner: Partner):
    """Factory: make_registration(offer_type=..., status=..., with_partner=True, deadlines=[...])"""

    def _make(
        offer_type=OfferType.TFA_ROMANIA.value,
        status=RegistrationStatus.DOCUMENTS_UPLOADED,
        with_partner=True,
        deadlines=(),
        user=None,
    ) -> Registration:
        registration = Registration(
            user_id=(user or student).id,
            partner_id=partner.id if with_partner else None,
            offer_type=offer_type,
            course_name="Corso di abilitazione",
            status=status,
            final_amount=Decimal("2500.00"),
        )
        db_session.add(registration)
        db_session.flush()
        for index, payment_status in enumerate(deadlines):
            db_session.add(PaymentDeadline(
                registration_id=registration.id,
                amount=Decimal("500.00"),
                due_date=date(2026, 1, 31) + timedelta(days=30 * index),
                payment_status=payment_status,
                paid_at=datetime.now(timezone.utc) if payment_status == PaymentStatus.PAID else None,
            ))
        db_session.commit()
        return registration

    return _make


@pytest.fixture
def make_document(db_session: Session):
    """Factory: make_document(registration, doc_type, status=..., reviewed=..., uploaded_at=...)"""

    def _make(
        registration: Registration,
        doc_type: str,
        status=UserDocumentStatus.PENDING,
        reviewed=False,
        uploaded_at=None,
        checksum=None,
    ) -> UserDocument:
        checksum = checksum or uuid4().hex
        document = UserDocument(
            user_id=registration.user_id,
            registration_id=registration.id,
            type=doc_type,
            status=status,
            reviewed_by_partner=reviewed,
            original_name=f"{doc_type.lower()}.pdf",
            mime_type="application/pdf",
            size_bytes=1024,
            storage_key=f"{registration.user_id}/2026/01/{checksum}.pdf",
            checksum=checksum,
            upload_source="USER_DASHBOARD",
            uploaded_by=registration.user_id,
            uploaded_by_role="USER",
            uploaded_at=uploaded_at or datetime.now(timezone.utc),
        )
        db_session.add(document)
        db_session.commit()
        return document

    return _make


@pytest.fixture
def fill_required_documents(make_document):
    """Create one document per required type of the registration's offer."""

    def _fill(registration: Registration, status=UserDocumentStatus.APPROVED_BY_PARTNER, reviewed=True):
        return [
            make_document(registration, doc_type.value, status=status, reviewed=reviewed)
            for doc_type in required_document_types(registration.offer_type)
        ]

    return _fill


@pytest.fixture
def tfa_registration(make_registration) -> Registration:
    return make_registration(OfferType.TFA_ROMANIA.value, RegistrationStatus.DOCUMENTS_UPLOADED)


# =============================================================================
# HTTP client
# =============================================================================

@pytest.fixture
def client(db_session: Session, storage, notifier):
    """TestClient wired to the test session, in-memory storage and recording sink."""
    from enrollflow.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier

    yield TestClient(app)

    app.dependency_overrides.clear()
