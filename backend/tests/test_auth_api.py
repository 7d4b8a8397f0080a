import unittest
import uuid

import httpx

from taskline.auth.security import create_access_token, decode_token, get_password_hash, verify_password
from taskline.db import get_db
from taskline.main import app
from tests.utils import DatabaseTestCase


class TestSecurity(unittest.TestCase):
    def test_password_round_trip(self) -> None:
        hashed = get_password_hash("s3cret!")
        self.assertTrue(verify_password("s3cret!", hashed))
        self.assertFalse(verify_password("wrong", hashed))

    def test_token_carries_subject_and_role(self) -> None:
        user_id = uuid.uuid4()
        payload = decode_token(create_access_token(user_id=user_id, role="admin"))
        self.assertEqual(payload["sub"], str(user_id))
        self.assertEqual(payload["role"], "admin")
        self.assertEqual(payload["type"], "access")

    def test_tampered_token_is_rejected(self) -> None:
        token = create_access_token(user_id=uuid.uuid4(), role="employee")
        with self.assertRaises(ValueError):
            decode_token(token[:-2] + "xx")


class TestApi(DatabaseTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()

        async def _get_db():
            async with self.sessions() as db:
                yield db

        app.dependency_overrides[get_db] = _get_db
        self.client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self) -> None:
        await self.client.aclose()
        app.dependency_overrides.clear()
        await super().asyncTearDown()

    async def test_register_login_me(self) -> None:
        res = await self.client.post(
            "/api/auth/register",
            json={"name": "Dana", "email": "dana@example.com", "password": "hunter22"},
        )
        self.assertEqual(res.status_code, 201, res.text)
        self.assertEqual(res.json()["user"]["role"], "employee")

        dup = await self.client.post(
            "/api/auth/register",
            json={"name": "Dana", "email": "dana@example.com", "password": "hunter22"},
        )
        self.assertEqual(dup.status_code, 400)

        bad = await self.client.post("/api/auth/login", json={"email": "dana@example.com", "password": "nope"})
        self.assertEqual(bad.status_code, 401)

        login = await self.client.post("/api/auth/login", json={"email": "dana@example.com", "password": "hunter22"})
        self.assertEqual(login.status_code, 200)
        token = login.json()["access_token"]

        me = await self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["email"], "dana@example.com")

    async def test_requests_without_token_are_rejected(self) -> None:
        res = await self.client.get("/api/tasks")
        self.assertEqual(res.status_code, 401)

    async def test_recurring_task_flow_over_http(self) -> None:
        token = create_access_token(user_id=self.admin.id, role="admin")
        headers = {"Authorization": f"Bearer {token}"}

        created = await self.client.post(
            "/api/tasks",
            headers=headers,
            json={
                "title": "Water plants",
                "project_id": str(self.project.id),
                "recurring": "Weekly",
                "recurring_days": [1, 3],
                "deadline": "2024-01-15T09:00:00",
            },
        )
        self.assertEqual(created.status_code, 201, created.text)
        body = created.json()
        self.assertEqual(body["kind"], "instance")

        templates = await self.client.get("/api/tasks/recurring-templates", headers=headers)
        self.assertEqual([t["id"] for t in templates.json()], [body["parent_recurring_id"]])
        self.assertEqual(templates.json()[0]["recurring_days"], [1, 3])

        rejected = await self.client.post(
            "/api/tasks",
            headers=headers,
            json={"title": "Bad", "project_id": str(self.project.id), "recurring": "Weekly"},
        )
        self.assertEqual(rejected.status_code, 400)

    async def test_admin_only_routes_reject_employees(self) -> None:
        employee = {"Authorization": f"Bearer {create_access_token(user_id=self.employee.id, role='employee')}"}
        admin = {"Authorization": f"Bearer {create_access_token(user_id=self.admin.id, role='admin')}"}

        self.assertEqual((await self.client.get("/api/auth/users", headers=employee)).status_code, 403)
        self.assertEqual(
            (await self.client.get(f"/api/tasks/employee/{self.employee.id}", headers=employee)).status_code, 403
        )

        users = await self.client.get("/api/auth/users", headers=admin)
        self.assertEqual(users.status_code, 200)
        self.assertEqual(len(users.json()), 2)
        tasks = await self.client.get(f"/api/tasks/employee/{self.employee.id}", headers=admin)
        self.assertEqual(tasks.status_code, 200)

    async def test_health(self) -> None:
        res = await self.client.get("/health")
        self.assertEqual(res.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
