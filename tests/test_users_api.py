import pytest

from conftest import API


class TestUserCrud:
    def test_create_and_get(self, client):
        resp = client.post(f"{API}/users/", json={"full_name": "Ada", "email": "ada@x.io", "role": "admin"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert "message" not in body
        user_id = body["data"]["id"]

        resp = client.get(f"{API}/users/{user_id}")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": user_id, "full_name": "Ada", "email": "ada@x.io", "role": "admin"}

    def test_create_requires_fields(self, client):
        resp = client.post(f"{API}/users/", json={"full_name": "Ada", "email": "ada@x.io"})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "role: cannot be blank"}

    def test_list_ordered_by_id(self, client, seed):
        first = seed.user(full_name="B")
        second = seed.user(full_name="A")
        resp = client.get(f"{API}/users/")
        assert resp.status_code == 200
        assert [u["id"] for u in resp.json()["data"]] == [first, second]

    def test_list_empty(self, client):
        assert client.get(f"{API}/users/").json() == {"success": True, "data": []}

    def test_get_missing(self, client):
        resp = client.get(f"{API}/users/999")
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    def test_get_non_numeric_id_is_not_found(self, client):
        assert client.get(f"{API}/users/abc").status_code == 404


class TestUserUpdate:
    def test_updates_only_named_field(self, client, seed):
        user_id = seed.user()
        resp = client.put(f"{API}/users/{user_id}", json={"role": "viewer"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": "ok"}

        data = client.get(f"{API}/users/{user_id}").json()["data"]
        assert data == {"id": user_id, "full_name": "Ada Lovelace", "email": "ada@example.com", "role": "viewer"}

    def test_disjoint_patches_merge(self, client, seed):
        user_id = seed.user()
        client.put(f"{API}/users/{user_id}", json={"full_name": "Grace"})
        client.put(f"{API}/users/{user_id}", json={"email": "grace@navy.mil"})
        data = client.get(f"{API}/users/{user_id}").json()["data"]
        assert data["full_name"] == "Grace"
        assert data["email"] == "grace@navy.mil"
        assert data["role"] == "admin"

    def test_empty_patch_is_rejected(self, client, seed):
        user_id = seed.user()
        resp = client.put(f"{API}/users/{user_id}", json={})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "bad request"}

    def test_null_fields_count_as_absent(self, client, seed):
        user_id = seed.user()
        resp = client.put(f"{API}/users/{user_id}", json={"role": None})
        assert resp.status_code == 400

    def test_update_missing_user(self, client):
        resp = client.put(f"{API}/users/42", json={"role": "x"})
        assert resp.status_code == 404


class TestUserDelete:
    def test_delete_detaches_assigned_tasks(self, client, seed):
        manager = seed.user(full_name="Manager")
        doomed = seed.user(full_name="Doomed")
        project = seed.project(manager)
        t1 = seed.task(doomed, project)
        t2 = seed.task(doomed, project)
        other = seed.task(manager, project)

        resp = client.delete(f"{API}/users/{doomed}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": doomed}

        assert client.get(f"{API}/users/{doomed}").status_code == 404
        assert client.get(f"{API}/tasks/{t1}").json()["data"]["assignee_id"] == ""
        assert client.get(f"{API}/tasks/{t2}").json()["data"]["assignee_id"] == ""
        assert client.get(f"{API}/tasks/{other}").json()["data"]["assignee_id"] == manager

    def test_delete_missing_user(self, client):
        assert client.delete(f"{API}/users/77").status_code == 404


class TestUserTasks:
    def test_lists_assigned_tasks(self, client, seed):
        user_id = seed.user()
        project = seed.project(user_id)
        task_id = seed.task(user_id, project)
        resp = client.get(f"{API}/users/{user_id}/tasks")
        assert resp.status_code == 200
        assert [t["id"] for t in resp.json()["data"]] == [task_id]

    def test_existing_user_without_tasks(self, client, seed):
        user_id = seed.user()
        assert client.get(f"{API}/users/{user_id}/tasks").json()["data"] == []

    def test_missing_user_is_404_not_empty_list(self, client):
        resp = client.get(f"{API}/users/404/tasks")
        assert resp.status_code == 404


class TestUserSearch:
    def test_name_is_case_insensitive_substring(self, client, seed):
        ada = seed.user(full_name="Ada Lovelace", email="ada@example.com")
        seed.user(full_name="Alan Turing", email="alan@example.com")
        resp = client.get(f"{API}/users/search", params={"name": "LOVE"})
        assert resp.status_code == 200
        assert [u["id"] for u in resp.json()["data"]] == [ada]

    def test_name_and_email_are_combined(self, client, seed):
        seed.user(full_name="Ada Lovelace", email="ada@example.com")
        alan = seed.user(full_name="Alan Turing", email="alan@bletchley.uk")
        resp = client.get(f"{API}/users/search", params={"name": "a", "email": "BLETCHLEY"})
        assert [u["id"] for u in resp.json()["data"]] == [alan]

    def test_no_match_is_empty_list(self, client, seed):
        seed.user()
        resp = client.get(f"{API}/users/search", params={"email": "nobody"})
        assert resp.status_code == 200
        assert resp.json()["data"] == []

    def test_requires_a_criterion(self, client):
        for params in ({}, {"name": "", "email": ""}):
            resp = client.get(f"{API}/users/search", params=params)
            assert resp.status_code == 400
            assert resp.json()["message"] == "name or email query parameter required"


class TestUserIds:
    @pytest.mark.parametrize("alias", ["1_0", "+10", "1%200"])
    def test_non_canonical_ids_do_not_resolve(self, client, seed, alias):
        for i in range(10):
            seed.user(full_name=f"u{i}")
        assert client.get(f"{API}/users/10").status_code == 200
        assert client.get(f"{API}/users/{alias}").status_code == 404
        assert client.put(f"{API}/users/{alias}", json={"role": "x"}).status_code == 404
        assert client.delete(f"{API}/users/{alias}").status_code == 404

    def test_delete_echoes_stored_id(self, client, seed):
        user_id = seed.user()
        resp = client.delete(f"{API}/users/00{user_id}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": user_id}


class TestUserSearchWildcards:
    def test_like_metacharacters_match_literally(self, client, seed):
        literal = seed.user(full_name="a_b", email="one@example.com")
        seed.user(full_name="axb", email="two@example.com")
        seed.user(full_name="100% done", email="three@example.com")
        resp = client.get(f"{API}/users/search", params={"name": "a_b"})
        assert [u["id"] for u in resp.json()["data"]] == [literal]
        resp = client.get(f"{API}/users/search", params={"name": "%"})
        assert [u["full_name"] for u in resp.json()["data"]] == ["100% done"]
