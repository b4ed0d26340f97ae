# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests
from fastapi import Body, FastAPI, Query
from fastapi.responses import JSONResponse, Response
from fastapi.testclient import TestClient

# Make the in-tree packages importable without an install
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from biztracker.api.client import ApiClient  # noqa: E402
from biztracker.entities import EntityReader  # noqa: E402
from biztracker.relationships.store import RelationshipStore  # noqa: E402

BASE_URL = "http://testserver"

COLLECTIONS = ("items", "purchases", "sales", "assets")


class FakeBackend:
    """In-memory stand-in for the BizTracker REST backend.

    ``envelope`` switches list responses between ``{"status", "results",
    "data"}`` and a bare array, the two shapes real endpoints return.
    """

    def __init__(self) -> None:
        self.relationships: Dict[str, Dict[str, Any]] = {}
        self.entities: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in COLLECTIONS}
        self.job_statuses: Dict[str, List[Dict[str, Any]]] = {}
        self.requests: List[str] = []
        self.envelope = True
        self.broken_lists = False
        self._seq = 0

    def next_id(self, prefix: str = "rel") -> str:
        self._seq += 1
        return f"{prefix}{self._seq:04d}"

    def add_entity(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(record)
        record.setdefault("_id", self.next_id(collection[:3]))
        self.entities[collection][record["_id"]] = record
        return record

    def add_relationship(self, record: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(record)
        record.setdefault("_id", self.next_id())
        self.relationships[record["_id"]] = record
        return record

    def script_job(self, job_id: str, statuses: List[Dict[str, Any]]) -> None:
        self.job_statuses[job_id] = list(statuses)

    def job_polls(self, job_id: str) -> int:
        return self.requests.count(f"GET /relationships/jobs/{job_id}")

    def listing(self, rows: List[Dict[str, Any]]) -> Any:
        if self.broken_lists:
            return "Service temporarily unavailable"
        if self.envelope:
            return {"status": "success", "results": len(rows), "data": rows}
        return rows


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _not_found(what: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"status": "fail", "message": f"{what} not found"})


def build_app(backend: FakeBackend) -> FastAPI:
    app = FastAPI()

    @app.middleware("http")
    async def _record(request, call_next):
        backend.requests.append(f"{request.method} {request.url.path}")
        return await call_next(request)

    @app.post("/relationships/convert-all")
    def convert_all():
        job_id = "job-1"
        backend.job_statuses.setdefault(
            job_id,
            [{"status": "completed", "startTime": _now(), "lastUpdated": _now(), "progress": {}}],
        )
        return {"success": True, "message": "Conversion started", "jobId": job_id}

    @app.post("/relationships/convert/{entity_type}/{entity_id}")
    def convert_one(entity_type: str, entity_id: str):
        return {
            "success": True,
            "message": f"Converted {entity_type} {entity_id}",
            "result": {"created": 2},
        }

    @app.get("/relationships/jobs/{job_id}")
    def job_status(job_id: str):
        statuses = backend.job_statuses.get(job_id)
        if not statuses:
            return _not_found("Job")
        current = statuses[0]
        if len(statuses) > 1:
            statuses.pop(0)
        return {"status": "success", "data": current}

    @app.get("/relationships/primary/{entity_id}")
    def by_primary(
        entity_id: str,
        primary_type: Optional[str] = Query(None, alias="primaryType"),
        relationship_type: Optional[str] = Query(None, alias="relationshipType"),
    ):
        rows = [
            rel
            for rel in backend.relationships.values()
            if rel["primaryId"] == entity_id
            and (primary_type is None or rel["primaryType"] == primary_type)
            and (relationship_type is None or rel["relationshipType"] == relationship_type)
        ]
        return backend.listing(rows)

    @app.get("/relationships/secondary/{entity_id}")
    def by_secondary(
        entity_id: str,
        secondary_type: Optional[str] = Query(None, alias="secondaryType"),
        relationship_type: Optional[str] = Query(None, alias="relationshipType"),
    ):
        rows = [
            rel
            for rel in backend.relationships.values()
            if rel["secondaryId"] == entity_id
            and (secondary_type is None or rel["secondaryType"] == secondary_type)
            and (relationship_type is None or rel["relationshipType"] == relationship_type)
        ]
        return backend.listing(rows)

    @app.post("/relationships", status_code=201)
    def create_relationship(payload: Dict[str, Any] = Body(...)):
        missing = [key for key in ("primaryId", "secondaryId", "relationshipType") if not payload.get(key)]
        if missing:
            return JSONResponse(
                status_code=400,
                content={"status": "fail", "message": f"Missing required fields: {', '.join(missing)}"},
            )
        record = backend.add_relationship({**payload, "createdAt": _now(), "updatedAt": _now()})
        return {"status": "success", "data": record}

    @app.get("/relationships/{relationship_id}")
    def get_relationship(relationship_id: str):
        record = backend.relationships.get(relationship_id)
        if record is None:
            return _not_found("Relationship")
        return record

    @app.patch("/relationships/{relationship_id}")
    def update_relationship(relationship_id: str, payload: Dict[str, Any] = Body(...)):
        record = backend.relationships.get(relationship_id)
        if record is None:
            return _not_found("Relationship")
        record.update(payload)
        record["updatedAt"] = _now()
        return {"status": "success", "data": record}

    @app.delete("/relationships/{relationship_id}")
    def delete_relationship(relationship_id: str):
        if backend.relationships.pop(relationship_id, None) is None:
            return _not_found("Relationship")
        return Response(status_code=204)

    def _collection_routes(collection: str) -> None:
        def list_entities():
            return backend.listing(list(backend.entities[collection].values()))

        def get_entity(entity_id: str):
            record = backend.entities[collection].get(entity_id)
            if record is None:
                return _not_found(collection[:-1].title())
            return {"status": "success", "data": record}

        app.add_api_route(f"/{collection}", list_entities, methods=["GET"])
        app.add_api_route(f"/{collection}/{{entity_id}}", get_entity, methods=["GET"])

    for collection in COLLECTIONS:
        _collection_routes(collection)

    return app


class DownSession:
    """Session whose every request fails at the transport level."""

    def __init__(self) -> None:
        self.calls = 0

    def request(self, method, url, **kwargs):
        self.calls += 1
        raise requests.ConnectionError(f"connection refused: {url}")


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def api(backend) -> ApiClient:
    return ApiClient(BASE_URL, session=TestClient(build_app(backend)))


@pytest.fixture()
def down_api() -> ApiClient:
    return ApiClient(BASE_URL, session=DownSession())


@pytest.fixture()
def store(api) -> RelationshipStore:
    return RelationshipStore(api)


@pytest.fixture()
def reader(api) -> EntityReader:
    return EntityReader(api)
