"""Integration tests for API routes."""

import pytest

from identifiers.ksuid import Ksuid
from identifiers.tsid import Tsid
from identifiers.ulid import Ulid


class TestGenerateRoutes:
    """Tests for identifier generation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,cls", [("tsid", Tsid), ("ulid", Ulid), ("ksuid", Ksuid)])
    async def test_generate_one(self, client, kind, cls):
        """POST /ids/{kind} returns one valid id by default."""
        response = await client.post(f"/api/v1/ids/{kind}")
        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == kind
        assert len(data["ids"]) == 1
        assert cls.is_valid(data["ids"][0])

    @pytest.mark.asyncio
    async def test_generate_batch_ordered(self, client):
        """Batches from monotonic generators come back sorted."""
        response = await client.post("/api/v1/ids/tsid", params={"count": 500})
        ids = response.json()["ids"]
        assert len(ids) == 500
        assert ids == sorted(set(ids))

    @pytest.mark.asyncio
    async def test_generate_lowercase(self, client):
        """lowercase=true renders Base32 ids in lower case."""
        response = await client.post("/api/v1/ids/ulid", params={"lowercase": "true"})
        value = response.json()["ids"][0]
        assert value == value.lower()
        assert Ulid.is_valid(value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1001])
    async def test_generate_count_bounds(self, client, count):
        """count outside 1..1000 is rejected."""
        response = await client.post("/api/v1/ids/tsid", params={"count": count})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_kind(self, client):
        """Unknown kinds are 404."""
        response = await client.post("/api/v1/ids/uuid")
        assert response.status_code == 404


class TestDecomposeRoutes:
    """Tests for identifier decoding."""

    @pytest.mark.asyncio
    async def test_decompose_tsid(self, client):
        """GET /ids/tsid/{value} splits time, node and random."""
        generated = (await client.post("/api/v1/ids/tsid")).json()["ids"][0]
        response = await client.get(f"/api/v1/ids/tsid/{generated}")
        assert response.status_code == 200
        data = response.json()
        tsid = Tsid.parse(generated)
        assert data["value"] == generated
        assert data["time"] == tsid.time_component
        assert data["timestamp"] == tsid.timestamp
        assert data["random"] == tsid.random_component
        assert data["hex"] == tsid.hex()
        assert data["node"] == 7
        assert data["instant"] == tsid.instant.isoformat()

    @pytest.mark.asyncio
    async def test_decompose_lowercase_ulid(self, client):
        """Decoding is case-insensitive and returns the canonical form."""
        ulid = Ulid.from_hash(1704067200000, "x")
        response = await client.get(f"/api/v1/ids/ulid/{ulid.lower()}")
        data = response.json()
        assert data["value"] == str(ulid)
        assert data["timestamp"] == 1704067200000
        assert data["instant"] == "2024-01-01T00:00:00+00:00"
        assert "node" not in data

    @pytest.mark.asyncio
    async def test_decompose_max_ulid(self, client):
        """Times past year 9999 decode without an instant."""
        response = await client.get(f"/api/v1/ids/ulid/{Ulid.MAX}")
        assert response.status_code == 200
        assert response.json()["instant"] is None

    @pytest.mark.asyncio
    async def test_decompose_ksuid(self, client):
        """KSUID timestamps are Unix seconds."""
        ksuid = Ksuid.from_payload(100, bytes(16))
        data = (await client.get(f"/api/v1/ids/ksuid/{ksuid}")).json()
        assert data["time"] == 100
        assert data["timestamp"] == 1400000100

    @pytest.mark.asyncio
    async def test_malformed_value(self, client):
        """Malformed ids are 422 with a tracking id."""
        response = await client.get("/api/v1/ids/tsid/not-a-tsid")
        assert response.status_code == 422
        data = response.json()
        assert data["type"] == "FormatError"
        assert Ksuid.is_valid(data["error_id"])
        assert data["context"]["value"] == "not-a-tsid"

    @pytest.mark.asyncio
    async def test_decompose_unknown_kind(self, client):
        """Unknown kinds are 404."""
        response = await client.get("/api/v1/ids/snowflake/123")
        assert response.status_code == 404


class TestHealthRoutes:
    """Tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_health_endpoint(self, client):
        """GET /health returns health status."""
        response = await client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert {check["name"] for check in data["checks"]} == {"loop", "tsid", "ulid", "ksuid"}

    @pytest.mark.asyncio
    async def test_stats_endpoint(self, client):
        """GET /stats reports per-format generator stats."""
        await client.post("/api/v1/ids/ulid", params={"count": 3})
        response = await client.get("/api/v1/stats")
        assert response.status_code == 200
        generators = response.json()["generators"]
        assert generators["ulid"]["generated"] >= 3
        assert generators["ulid"]["mode"] == "monotonic"
        assert generators["ksuid"]["mode"] == "fast"
        assert generators["tsid"]["node"] == 7
