import concurrent.futures
import uuid

from fastapi.testclient import TestClient

from conftest import auth_header


class TestE2E:
    def test_complete_user_journey(self, client: TestClient):
        # 1. Signup
        suffix = uuid.uuid4().hex[:8]
        email = f"user_{suffix}@example.com"
        username = f"user_{suffix}"
        password = "SecurePass123!"

        # email is required
        r = client.post("/api/signup", json={"username": username, "password": password,
                                             "confirmPassword": password})
        assert r.status_code == 422

        r = client.post("/api/signup", json={
            "email": email,
            "username": username,
            "password": password,
            "confirmPassword": password,
        })
        assert r.status_code == 201
        signup_token = r.json()["token"]
        user_id = r.json()["user"]["id"]

        # same email again
        r = client.post("/api/signup", json={
            "email": email,
            "username": f"other_{suffix}",
            "password": "OtherPass123!",
            "confirmPassword": "OtherPass123!",
        })
        assert r.status_code == 409
        assert "already" in r.json()["message"].lower()

        # 2. Login and tokens
        r = client.post("/api/login", json={"emailOrUsername": email, "password": "WrongPass123!"})
        assert r.status_code == 401

        r = client.post("/api/login", json={"emailOrUsername": username, "password": password})
        assert r.status_code == 200
        token = r.json()["token"]
        assert client.get("/api/profile", headers=auth_header(signup_token)).json()["id"] == user_id

        # 3. Tasks
        r = client.post("/api/tasks", json={"title": "Test Task"})
        assert r.status_code == 401

        r = client.post("/api/tasks", headers=auth_header("invalid"), json={"title": "Test Task"})
        assert r.status_code == 401

        task_title = "My first task"
        r = client.post("/api/tasks", headers=auth_header(token), json={"title": task_title})
        assert r.status_code == 201
        task_id = r.json()["id"]

        r = client.get("/api/tasks", headers=auth_header(token))
        assert r.status_code == 200
        tasks = r.json()
        assert len(tasks) == 1
        assert tasks[0]["id"] == task_id
        assert tasks[0]["title"] == task_title

        r = client.put(f"/api/tasks/{task_id}", headers=auth_header(token), json={"status": "in-progress"})
        assert r.status_code == 200
        assert r.json()["status"] == "in-progress"

        # 4. Isolation between users
        other_password = "OtherPass123!"
        r = client.post("/api/signup", json={
            "email": f"other_{suffix}@example.com",
            "username": f"other_{suffix}",
            "password": other_password,
            "confirmPassword": other_password,
        })
        assert r.status_code == 201
        other_token = r.json()["token"]

        r = client.get("/api/tasks", headers=auth_header(other_token))
        assert r.status_code == 200
        assert r.json() == []

        r = client.delete(f"/api/tasks/{task_id}", headers=auth_header(other_token))
        assert r.status_code == 404

        # 5. Cleanup
        r = client.delete(f"/api/tasks/{task_id}", headers=auth_header(token))
        assert r.status_code == 200

        r = client.get("/api/tasks", headers=auth_header(token))
        assert r.status_code == 200
        assert r.json() == []

    def test_concurrent_operations(self, client: TestClient, signup):
        token, user, _ = signup()

        def create_task(i):
            return client.post("/api/tasks", headers=auth_header(token), json={"title": f"Concurrent Task {i}"})

        with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
            futures = [executor.submit(create_task, i) for i in range(5)]
            responses = [f.result() for f in futures]

        assert all(r.status_code == 201 for r in responses)

        r = client.get("/api/tasks", headers=auth_header(token))
        assert r.status_code == 200
        tasks = r.json()
        assert len(tasks) == 5
        assert len({task["title"] for task in tasks}) == 5
        assert all(task["userId"] == user["id"] for task in tasks)

    def test_concurrent_duplicate_signups_leave_one_account(self, client: TestClient):
        payload = {
            "email": "twin@example.com",
            "username": "twin",
            "password": "SecurePass123!",
            "confirmPassword": "SecurePass123!",
        }
        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            responses = list(executor.map(lambda _: client.post("/api/signup", json=payload), range(2)))

        assert sorted(r.status_code for r in responses) == [201, 409]
