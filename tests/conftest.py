"""
Shared fixtures: an in-process stand-in for the CampusCare API service and
helpers for minting credential tokens.
"""
import asyncio
import itertools
import json
import os
from datetime import date, datetime, timedelta, timezone

os.environ["TESTING"] = "1"

import httpx
import pytest
import redis
from jose import jwt

from campuscare.core.storage import InMemoryRedis, TokenStorage
from campuscare.services.api_client import CampusCareAPI
from campuscare.services.appointment_service import AppointmentService
from campuscare.services.record_service import RecordService
from campuscare.services.session_store import SessionStore

TEST_SECRET = "campuscare-test-secret"


def make_token(subject_id, role, email="user@example.com", expires_in=timedelta(hours=1), id_key="id"):
    """Mint a signed token the way the CampusCare service does."""
    claims = {id_key: subject_id, "role": role, "email": email}
    if expires_in is not None:
        claims["exp"] = int((datetime.now(timezone.utc) + expires_in).timestamp())
    return jwt.encode(claims, TEST_SECRET, algorithm="HS256")


def run(coro):
    return asyncio.run(coro)


class RecordingRedis(InMemoryRedis):
    """In-memory slot that remembers every operation."""

    def __init__(self):
        super().__init__()
        self.ops = []

    def get(self, key):
        self.ops.append("get")
        return super().get(key)

    def set(self, key, value):
        self.ops.append("set")
        return super().set(key, value)

    def delete(self, key):
        self.ops.append("delete")
        return super().delete(key)


class UnreachableDeleteRedis(RecordingRedis):
    """Slot whose delete reaches the store but then reports a lost connection."""

    def delete(self, key):
        super().delete(key)
        raise redis.ConnectionError("Connection refused")


class FakeCampusCareService:
    """Minimal CampusCare API service served through httpx.MockTransport."""

    def __init__(self):
        self.users = {}
        self.doctors = []
        self.appointments = {}
        self.records = []
        self.calls = []
        self.failures = {}
        self.profile_available = True
        self.login_role_override = None
        self.scope_appointments = True
        self._ids = itertools.count(1)
        self.transport = httpx.MockTransport(self.handler)

    # Seeding helpers
    def add_user(self, user_id, role, email, password="secret123", name=None, specialization=None):
        self.users[email] = {
            "_id": user_id, "role": role, "email": email,
            "password": password, "name": name or email.split("@")[0],
        }
        if role == "doctor":
            self.doctors.append({"_id": user_id, "name": name or email, "specialization": specialization})
        return self.users[email]

    def add_appointment(self, patient, doctor, day, time_slot="09:00 AM", status="pending", symptoms="Fever"):
        appointment_id = f"apt{next(self._ids)}"
        self.appointments[appointment_id] = {
            "_id": appointment_id,
            "patient": patient,
            "doctor": doctor,
            "date": day.isoformat() if isinstance(day, date) else day,
            "timeSlot": time_slot,
            "symptoms": symptoms,
            "status": status,
            "notes": "",
        }
        return appointment_id

    def add_record(self, patient, doctor, diagnosis="Common cold", created_at=None, prescription=None):
        record = {
            "_id": f"rec{next(self._ids)}",
            "patient": patient,
            "doctor": {"_id": doctor, "name": "Dr. Rao"},
            "diagnosis": diagnosis,
            "prescription": prescription or [],
            "notes": "",
            "createdAt": (created_at or datetime.now(timezone.utc)).isoformat(),
        }
        self.records.append(record)
        return record

    def fail(self, method, path, status_code=500, body=None):
        self.failures[(method, path)] = (status_code, body if body is not None else {"error": "Server exploded"})

    def count(self, method, path):
        return self.calls.count((method, path))

    # Request handling
    def _actor(self, request):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        claims = jwt.get_unverified_claims(header.split(" ", 1)[1])
        return {"id": claims.get("id") or claims.get("_id"), "role": claims.get("role")}

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        self.calls.append((method, path))

        if (method, path) in self.failures:
            status_code, body = self.failures[(method, path)]
            return httpx.Response(status_code, json=body)

        body = json.loads(request.content) if request.content else {}
        actor = self._actor(request)

        if (method, path) == ("POST", "/auth/login"):
            user = self.users.get(body.get("email"))
            if not user or user["password"] != body.get("password"):
                return httpx.Response(401, json={"error": "Invalid credentials"})
            token = make_token(user["_id"], user["role"], user["email"], id_key="_id")
            return httpx.Response(200, json={"token": token, "role": self.login_role_override or user["role"]})

        if (method, path) == ("POST", "/auth/register"):
            if body.get("email") in self.users:
                return httpx.Response(400, json={"error": "User already exists"})
            self.add_user(f"u{next(self._ids)}", body["role"], body["email"], body["password"], body.get("name"))
            return httpx.Response(201, json={"message": "User registered"})

        if (method, path) == ("POST", "/auth/forgot-password"):
            return httpx.Response(200, json={
                "message": "Reset instructions sent",
                "resetToken": "reset-abc",
                "resetUrl": "http://localhost:5173/reset-password?token=reset-abc",
            })

        if (method, path) == ("POST", "/auth/reset-password"):
            if body.get("token") != "reset-abc":
                return httpx.Response(400, json={"error": "Invalid or expired reset token"})
            return httpx.Response(200, json={"message": "Password reset"})

        if actor is None:
            return httpx.Response(401, json={"error": "No token provided"})

        if (method, path) == ("GET", "/auth/profile"):
            if not self.profile_available:
                return httpx.Response(404, json={"error": "Not found"})
            return httpx.Response(200, json={"name": "Asha", "email": "asha@campus.edu", "rollNumber": "B21CS001"})

        if (method, path) == ("GET", "/appointments/doctors"):
            return httpx.Response(200, json=self.doctors)

        if (method, path) == ("GET", "/appointments"):
            key = "doctor" if actor["role"] == "doctor" else "patient"
            visible = [
                a for a in self.appointments.values()
                if not self.scope_appointments or actor["role"] == "admin" or a[key] == actor["id"]
            ]
            return httpx.Response(200, json=visible)

        if (method, path) == ("POST", "/appointments"):
            appointment_id = self.add_appointment(
                actor["id"], body["doctor"], body["date"], body["timeSlot"], symptoms=body["symptoms"]
            )
            return httpx.Response(201, json={"appointment": self.appointments[appointment_id]})

        if path.startswith("/appointments/"):
            appointment = self.appointments.get(path.rsplit("/", 1)[1])
            if appointment is None:
                return httpx.Response(404, json={"error": "Appointment not found"})
            if method == "PATCH":
                appointment["status"] = body["status"]
                return httpx.Response(200, json=appointment)
            if method == "DELETE":
                appointment["status"] = "cancelled"
                return httpx.Response(200, json={"message": "Appointment cancelled"})

        if (method, path) == ("GET", "/records"):
            key = "doctor" if actor["role"] == "doctor" else "patient"
            visible = [
                r for r in self.records
                if (r[key]["_id"] if isinstance(r[key], dict) else r[key]) == actor["id"]
            ]
            return httpx.Response(200, json=visible)

        if (method, path) == ("GET", "/records/patients"):
            patients = [
                {"_id": u["_id"], "name": u["name"], "email": u["email"]}
                for u in self.users.values() if u["role"] == "patient"
            ]
            return httpx.Response(200, json=patients)

        if (method, path) == ("POST", "/records"):
            record = self.add_record(body["patient"], actor["id"], body["diagnosis"], prescription=body["prescription"])
            return httpx.Response(201, json=record)

        if (method, path) == ("GET", "/admin/stats"):
            return httpx.Response(200, json={
                "patients": sum(1 for u in self.users.values() if u["role"] == "patient"),
                "doctors": len(self.doctors),
                "appointments": len(self.appointments),
            })

        return httpx.Response(404, json={"error": "Route not found"})


@pytest.fixture
def service():
    service = FakeCampusCareService()
    service.add_user("p1", "patient", "asha@campus.edu", name="Asha")
    service.add_user("p2", "patient", "ravi@campus.edu", name="Ravi")
    service.add_user("d1", "doctor", "rao@campus.edu", name="Dr. Rao", specialization="General Medicine")
    service.add_user("a1", "admin", "admin@campus.edu", name="Admin")
    return service


@pytest.fixture
def redis_client():
    return RecordingRedis()


@pytest.fixture
def storage(redis_client):
    return TokenStorage(redis_client)


@pytest.fixture
def store(storage, service):
    store = SessionStore(storage, CampusCareAPI(transport=service.transport))
    store.initialize()
    return store


@pytest.fixture
def appointments(store):
    return AppointmentService(store)


@pytest.fixture
def records(store):
    return RecordService(store)


@pytest.fixture
def today():
    return date.today()
