"""
Health checks de la API.

- /health - Health check básico sin dependencias
- /health/db - SELECT 1 contra la base configurada
"""

import pytest


class TestHealthChecks:
    @pytest.mark.asyncio
    async def test_basic_health_endpoint(self, api_client):
        response = await api_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "farmout-dispatch"}

    @pytest.mark.asyncio
    async def test_database_health_check(self, api_client):
        response = await api_client.get("/health/db")

        assert response.status_code == 200, f"DB health check falló: {response.text}"
        data = response.json()
        assert data["status"] == "healthy"
        assert data["component"] == "database"

    @pytest.mark.asyncio
    async def test_database_health_check_reports_503(self, api_client):
        from farmout_dispatch.api.deps import get_db_session
        from farmout_dispatch.main import app

        class BrokenSession:
            async def execute(self, *args, **kwargs):
                raise ConnectionError("database unreachable")

        async def broken_session():
            yield BrokenSession()

        app.dependency_overrides[get_db_session] = broken_session

        response = await api_client.get("/health/db")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
