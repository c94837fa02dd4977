from datetime import datetime, timedelta, timezone

import pytest

from coursehub.schemas.user import Role

API = "/api/v1"


@pytest.fixture
def people(make_user):
    return {
        "owner": make_user("u-owner", "Olga", Role.INSTRUCTOR),
        "student": make_user("u-stud", "Sara"),
        "outsider": make_user("u-out", "Omar"),
    }


def _headers(people, who):
    return people[who][1]


def _create_course(client, headers, code="CS101"):
    res = client.post(f"{API}/courses", json={"title": "Intro", "code": code}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def _create_assignment(client, headers, course_id):
    due = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
    res = client.post(
        f"{API}/assignments",
        json={"courseId": course_id, "title": "HW1", "dueDate": due},
        headers=headers,
    )
    assert res.status_code == 201, res.text
    return res.json()


def test_health(client):
    assert client.get(f"{API}/health").json() == {"status": "ok"}


def test_missing_token_is_401(client):
    res = client.get(f"{API}/courses")
    assert res.status_code == 401
    assert "message" in res.json()


def test_garbage_token_is_401(client):
    res = client.get(f"{API}/courses", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_register_login_me(client):
    res = client.post(
        f"{API}/auth/register",
        json={"name": "Nina", "email": "Nina@Example.com", "password": "secret1", "role": "instructor"},
    )
    assert res.status_code == 201, res.text
    assert res.json()["user"]["email"] == "nina@example.com"

    again = client.post(
        f"{API}/auth/register",
        json={"name": "Nina", "email": "nina@example.com", "password": "secret1"},
    )
    assert again.status_code == 400

    bad = client.post(f"{API}/auth/login", json={"email": "nina@example.com", "password": "wrong"})
    assert bad.status_code == 401

    ok = client.post(f"{API}/auth/login", json={"email": "nina@example.com", "password": "secret1"})
    assert ok.status_code == 200
    token = ok.json()["access_token"]

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["role"] == "instructor"
    assert "passwordHash" not in me.json()


def test_register_cannot_claim_admin(client):
    res = client.post(
        f"{API}/auth/register",
        json={"name": "Eve", "email": "eve@example.com", "password": "secret1", "role": "admin"},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Validation failed"


def test_duplicate_course_code_case_insensitive(client, people):
    _create_course(client, _headers(people, "owner"), code="CS101")
    res = client.post(
        f"{API}/courses", json={"title": "Again", "code": "cs101"}, headers=_headers(people, "student")
    )
    assert res.status_code == 400
    assert res.json() == {"message": "Course code already exists"}


def test_missing_fields_is_400(client, people):
    res = client.post(f"{API}/courses", json={"title": "No code"}, headers=_headers(people, "owner"))
    assert res.status_code == 400


def test_non_member_gets_403_without_data(client, people):
    course = _create_course(client, _headers(people, "owner"))
    res = client.get(f"{API}/courses/{course['id']}", headers=_headers(people, "outsider"))
    assert res.status_code == 403
    assert res.json() == {"message": "Access denied"}


def test_unknown_course_is_404(client, people):
    res = client.get(f"{API}/courses/nope", headers=_headers(people, "owner"))
    assert res.status_code == 404


def test_enroll_leave_flow(client, people):
    course = _create_course(client, _headers(people, "owner"))
    cid = course["id"]

    res = client.post(f"{API}/courses/{cid}/enroll", headers=_headers(people, "student"))
    assert res.status_code == 200
    assert "u-stud" in res.json()["members"]

    assert client.post(f"{API}/courses/{cid}/enroll", headers=_headers(people, "student")).status_code == 400
    assert client.get(f"{API}/courses", headers=_headers(people, "student")).json()[0]["id"] == cid

    assert client.post(f"{API}/courses/{cid}/leave", headers=_headers(people, "owner")).status_code == 400
    assert client.post(f"{API}/courses/{cid}/leave", headers=_headers(people, "student")).status_code == 200
    assert client.get(f"{API}/courses/{cid}", headers=_headers(people, "student")).status_code == 403


def test_submit_then_grade_then_locked(client, people):
    owner, student = _headers(people, "owner"), _headers(people, "student")
    course = _create_course(client, owner)
    client.post(f"{API}/courses/{course['id']}/enroll", headers=student)
    assignment = _create_assignment(client, owner, course["id"])
    assert assignment["status"] == "Pending"

    url = f"{API}/assignments/{assignment['id']}"
    res = client.post(f"{url}/submit", json={"fileUrl": "http://x/f.pdf"}, headers=student)
    assert res.status_code == 200
    assert res.json()["status"] == "Submitted"
    assert len(res.json()["submissions"]) == 1

    res = client.post(f"{url}/submit", json={"fileUrl": "http://x/g.pdf"}, headers=student)
    assert len(res.json()["submissions"]) == 1

    assert client.put(f"{url}/grade", headers=student).status_code == 403
    res = client.put(f"{url}/grade", headers=owner)
    assert res.status_code == 200
    assert res.json()["status"] == "Graded"

    late = client.post(f"{url}/submit", json={"fileUrl": "http://x/late.pdf"}, headers=student)
    assert late.status_code == 409
    assert client.get(url, headers=student).json()["submissions"][0]["fileUrl"] == "http://x/g.pdf"


def test_submit_without_file_url(client, people):
    owner = _headers(people, "owner")
    course = _create_course(client, owner)
    assignment = _create_assignment(client, owner, course["id"])
    res = client.post(f"{API}/assignments/{assignment['id']}/submit", json={"comment": "hi"}, headers=owner)
    assert res.status_code == 400
    assert res.json() == {"message": "File URL is required"}


def test_create_assignment_errors(client, people):
    owner, student = _headers(people, "owner"), _headers(people, "student")
    course = _create_course(client, owner)
    due = datetime.now(timezone.utc).isoformat()

    res = client.post(f"{API}/assignments", json={"courseId": "nope", "title": "x", "dueDate": due}, headers=owner)
    assert res.status_code == 404
    res = client.post(
        f"{API}/assignments", json={"courseId": course["id"], "title": "x", "dueDate": due}, headers=student
    )
    assert res.status_code == 403
    res = client.post(f"{API}/assignments", json={"courseId": course["id"], "title": "x"}, headers=owner)
    assert res.status_code == 400


def test_update_validates_enums_and_transitions(client, people):
    owner = _headers(people, "owner")
    course = _create_course(client, owner)
    assignment = _create_assignment(client, owner, course["id"])
    url = f"{API}/assignments/{assignment['id']}"

    assert client.put(url, json={"priority": "Urgent"}, headers=owner).status_code == 400

    res = client.put(url, json={"priority": "High", "title": "HW1b"}, headers=owner)
    assert res.status_code == 200
    assert (res.json()["priority"], res.json()["title"]) == ("High", "HW1b")

    client.put(f"{url}/grade", headers=owner)
    assert client.put(url, json={"status": "Pending"}, headers=owner).status_code == 409


def test_list_and_delete_assignment(client, people):
    owner, outsider = _headers(people, "owner"), _headers(people, "outsider")
    course = _create_course(client, owner)
    assignment = _create_assignment(client, owner, course["id"])

    assert [a["id"] for a in client.get(f"{API}/assignments", headers=owner).json()] == [assignment["id"]]
    assert client.get(f"{API}/assignments", headers=outsider).json() == []
    assert client.get(f"{API}/assignments?status=Graded", headers=owner).json() == []

    url = f"{API}/assignments/{assignment['id']}"
    assert client.delete(url, headers=outsider).status_code == 403
    assert client.delete(url, headers=owner).status_code == 200
    assert client.delete(url, headers=owner).status_code == 404


def test_resources_endpoints(client, people):
    owner, student, outsider = (_headers(people, w) for w in ("owner", "student", "outsider"))
    course = _create_course(client, owner)
    client.post(f"{API}/courses/{course['id']}/enroll", headers=student)
    url = f"{API}/courses/{course['id']}/resources"

    res = client.post(url, json={"title": "Slides", "fileUrl": "http://x/s.pdf"}, headers=owner)
    assert res.status_code == 201
    assert res.json()["type"] == "file"
    assert client.post(url, json={"title": "x", "fileUrl": "y"}, headers=student).status_code == 403

    assert [r["title"] for r in client.get(url, headers=student).json()] == ["Slides"]
    assert client.get(url, headers=outsider).status_code == 403


def test_delete_course_cascades(client, people, assignment_repo):
    owner = _headers(people, "owner")
    course = _create_course(client, owner)
    _create_assignment(client, owner, course["id"])

    assert client.delete(f"{API}/courses/{course['id']}", headers=owner).status_code == 200
    assert assignment_repo.items == {}
    assert client.get(f"{API}/courses/{course['id']}", headers=owner).status_code == 404


def test_message_history_requires_access(client, people):
    owner = _headers(people, "owner")
    course = _create_course(client, owner)
    url = f"{API}/courses/{course['id']}/messages"

    assert client.get(url, headers=owner).json() == []
    assert client.get(url, headers=_headers(people, "outsider")).status_code == 403


def test_reads_resolve_names(client, people):
    owner, student = _headers(people, "owner"), _headers(people, "student")
    course = _create_course(client, owner)
    client.post(f"{API}/courses/{course['id']}/enroll", headers=student)
    assignment = _create_assignment(client, owner, course["id"])
    assert assignment["course"] == {"id": course["id"], "title": "Intro", "code": "CS101"}

    url = f"{API}/assignments/{assignment['id']}"
    client.post(f"{url}/submit", json={"fileUrl": "http://x/f.pdf"}, headers=student)

    got = client.get(url, headers=owner).json()
    assert got["course"]["code"] == "CS101"
    assert got["submissions"][0]["userId"] == "u-stud"
    assert got["submissions"][0]["user"] == {"id": "u-stud", "name": "Sara", "email": "u-stud@example.com"}
    assert client.get(f"{API}/assignments", headers=owner).json()[0]["submissions"][0]["user"]["name"] == "Sara"

    detail = client.get(f"{API}/courses/{course['id']}", headers=student).json()
    assert detail["course"]["owner"]["name"] == "Olga"
    assert [m["name"] for m in detail["course"]["memberDetails"]] == ["Sara"]
    assert client.get(f"{API}/courses", headers=student).json()[0]["owner"]["id"] == "u-owner"
