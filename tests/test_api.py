from datetime import datetime
import time

from fastapi.testclient import TestClient
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from jaromind.main import create_app

from conftest import auth_headers, new_user_id

COMMENT = "Really helped me understand the topic."


def seed_course(mongo, **fields):
    doc = {"title": "Course", "isActive": True, "createdAt": datetime.utcnow(), "enrollmentCount": 0,
           "rating": 0.0, "reviewCount": 0}
    doc.update(fields)
    return mongo.sync.courses.insert_one(doc).inserted_id


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert abs(body["time"] - time.time()) < 60


def test_list_and_get_courses(client, mongo):
    seed_course(mongo, id="c-1", title="Algebra", type="academic")
    seed_course(mongo, id="c-2", title="Drawing", type="hobby")
    seed_course(mongo, id="c-3", title="Retired", isActive=False)
    legacy_oid = seed_course(mongo, title="Legacy")

    resp = client.get("/courses")
    assert resp.status_code == 200
    assert resp.json()["count"] == 3

    resp = client.get("/courses", params={"type": "academic"})
    assert [c["id"] for c in resp.json()["courses"]] == ["c-1"]

    resp = client.get(f"/courses/{legacy_oid}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["course"]["id"] == str(legacy_oid)
    assert "_id" not in body["course"]
    assert body["reviews"] == []


def test_legacy_course_with_object_id_metadata(client, mongo, tokens):
    creator = ObjectId()
    tutor = ObjectId()
    legacy_oid = seed_course(mongo, title="Legacy", createdBy=creator, tutors=[tutor], meta={"owner": creator})

    resp = client.get("/courses")
    assert resp.status_code == 200
    listed = resp.json()["courses"][0]
    assert listed["id"] == str(legacy_oid)
    assert listed["createdBy"] == str(creator)
    assert listed["tutors"] == [str(tutor)]
    assert listed["meta"] == {"owner": str(creator)}

    resp = client.get(f"/courses/{legacy_oid}")
    assert resp.status_code == 200
    assert resp.json()["course"]["createdBy"] == str(creator)

    headers = auth_headers(tokens)
    assert client.post(f"/user/enroll/{legacy_oid}", headers=headers).status_code == 200
    resp = client.get("/user/enrollments", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["enrollments"][0]["course"]["createdBy"] == str(creator)


def test_missing_course_error_body(client, mongo):
    seed_course(mongo, id="c-off", isActive=False)

    for ref in ("no-such-course", "c-off"):
        resp = client.get(f"/courses/{ref}")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "NotFound", "message": "Course not found"}


def test_admin_course_management(client, tokens):
    user = auth_headers(tokens)
    admin = auth_headers(tokens, role="admin")
    payload = {"title": "Robotics", "description": "Build a rover", "type": "hobby", "price": 499}

    assert client.post("/admin/courses", json=payload).status_code == 401
    assert client.post("/admin/courses", json=payload, headers=user).status_code == 403

    resp = client.post("/admin/courses", json=payload, headers=admin)
    assert resp.status_code == 201
    course = resp.json()["course"]
    assert course["isActive"] is True
    assert course["enrollmentCount"] == 0

    resp = client.put(
        f"/admin/courses/{course['id']}",
        json={"title": "Robotics 101", "rating": 5.0, "id": "hijack"},
        headers=admin,
    )
    assert resp.status_code == 200
    updated = client.get(f"/courses/{course['id']}").json()["course"]
    assert updated["title"] == "Robotics 101"
    assert updated["rating"] == 0.0

    assert client.delete(f"/admin/courses/{course['id']}", headers=admin).status_code == 200
    assert client.get(f"/courses/{course['id']}").status_code == 404
    assert client.delete("/admin/courses/missing", headers=admin).status_code == 404


def test_enroll_review_flow(client, mongo, tokens):
    seed_course(mongo, id="c-1", title="Algebra")
    user_id = new_user_id()
    headers = auth_headers(tokens, user_id=user_id, name="Ravi")

    resp = client.post("/courses/c-1/reviews", json={"rating": 4, "comment": COMMENT}, headers=headers)
    assert resp.status_code == 403
    assert resp.json()["error"] == "Forbidden"

    resp = client.post("/user/enroll/c-1", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["enrollment"]["courseId"] == "c-1"

    resp = client.post("/user/enroll/c-1", headers=headers)
    assert resp.status_code == 409

    resp = client.post("/courses/c-1/reviews", json={"rating": 4, "comment": COMMENT}, headers=headers)
    assert resp.status_code == 201
    review = resp.json()["review"]
    assert review["userName"] == "Ravi"

    resp = client.post("/user/courses/c-1/review", json={"rating": 2, "comment": COMMENT}, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["review"]["id"] == review["id"]

    rating = client.get("/courses/c-1/rating").json()
    assert rating == {"success": True, "averageRating": 2.0, "totalReviews": 1}

    course = client.get("/courses/c-1").json()
    assert course["course"]["enrollmentCount"] == 1
    assert course["course"]["reviewCount"] == 1
    assert len(course["reviews"]) == 1

    enrollments = client.get("/user/enrollments", headers=headers).json()
    assert enrollments["count"] == 1
    assert enrollments["enrollments"][0]["course"]["id"] == "c-1"


def test_review_validation_and_ownership(client, mongo, tokens):
    seed_course(mongo, id="c-1")
    author = auth_headers(tokens)
    client.post("/user/enroll/c-1", headers=author)

    resp = client.post("/courses/c-1/reviews", json={"rating": 7, "comment": COMMENT}, headers=author)
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidInput"

    resp = client.post("/courses/c-1/reviews", json={"rating": 5, "comment": "short"}, headers=author)
    assert resp.status_code == 400

    review_id = client.post(
        "/courses/c-1/reviews", json={"rating": 5, "comment": COMMENT}, headers=author,
    ).json()["review"]["id"]

    stranger = auth_headers(tokens)
    resp = client.put(f"/reviews/{review_id}", json={"rating": 1, "comment": COMMENT}, headers=stranger)
    assert resp.status_code == 403
    assert client.delete(f"/reviews/{review_id}", headers=stranger).status_code == 403

    assert client.get(f"/reviews/{review_id}").json()["review"]["rating"] == 5
    assert client.get("/reviews/not-an-id").status_code == 400

    admin = auth_headers(tokens, role="admin")
    assert client.delete(f"/reviews/{review_id}", headers=admin).status_code == 200
    assert client.get(f"/reviews/{review_id}").status_code == 404
    assert client.get("/courses/c-1/reviews").json() == {"success": True, "reviews": []}


def test_progress_and_stats(client, mongo, tokens):
    seed_course(mongo, id="c-1")
    headers = auth_headers(tokens)

    resp = client.put("/user/courses/c-1/progress", json={"progress": 50}, headers=headers)
    assert resp.status_code == 404

    client.post("/user/enroll/c-1", headers=headers)
    resp = client.put("/user/courses/c-1/progress", json={"progress": 150}, headers=headers)
    assert resp.status_code == 400

    resp = client.put(
        "/user/courses/c-1/progress",
        json={"progress": 100, "completedLessons": ["intro", "final"]},
        headers=headers,
    )
    assert resp.status_code == 200

    stats = client.get("/courses/c-1/stats").json()
    assert stats == {"enrollments": 1, "completions": 1, "completionRate": 100.0}


def test_bad_tokens(client, tokens):
    assert client.get("/user/enrollments").status_code == 401
    assert client.get("/user/enrollments", headers={"Authorization": "Token abc"}).status_code == 401
    assert client.get("/user/enrollments", headers={"Authorization": "Bearer garbage"}).status_code == 401


class _Unreachable:
    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)

        async def fail(*args, **kwargs):
            raise ServerSelectionTimeoutError("store unreachable")
        return fail


class _UnreachableDatabase:
    name = "unreachable"

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return _Unreachable()


def test_store_unavailable_is_transient(settings):
    # no lifespan here, so index creation is not attempted
    client = TestClient(create_app(settings, db=_UnreachableDatabase()))

    resp = client.get("/courses/c-1")
    assert resp.status_code == 503
    assert resp.json() == {
        "success": False,
        "error": "Transient",
        "message": "Database temporarily unavailable",
    }
