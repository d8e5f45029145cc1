"""Tests for the course/specialization taxonomy API."""

from sqlalchemy import func, select

from app.models.persisted_library import CourseRecord, SpecializationRecord


async def add_course(client, name):
    return await client.post(
        "/api/v1/courses", json={"type": "course", "name": name}
    )


async def add_specialization(client, name, course_id):
    return await client.post(
        "/api/v1/courses",
        json={"type": "specialization", "name": name, "courseId": course_id},
    )


async def test_course_upsert_is_idempotent(client, session):
    r1 = await add_course(client, "B.Tech")
    assert r1.status_code == 200, r1.text
    r2 = await add_course(client, "B.Tech")
    assert r2.status_code == 200
    assert r1.json()["id"] == r2.json()["id"]

    count = await session.scalar(
        select(func.count()).select_from(CourseRecord)
    )
    assert count == 1


async def test_same_specialization_name_under_two_courses(client, session):
    btech = (await add_course(client, "B.Tech")).json()["id"]
    mtech = (await add_course(client, "M.Tech")).json()["id"]

    a = await add_specialization(client, "CSE", btech)
    b = await add_specialization(client, "CSE", mtech)
    assert a.status_code == 200 and b.status_code == 200
    assert a.json()["id"] != b.json()["id"]
    assert a.json()["courseId"] == btech

    again = await add_specialization(client, "CSE", btech)
    assert again.status_code == 200
    assert again.json()["id"] == a.json()["id"]

    count = await session.scalar(
        select(func.count()).select_from(SpecializationRecord)
    )
    assert count == 2


async def test_list_sorted_with_nested_specializations(client):
    mca = (await add_course(client, "MCA")).json()["id"]
    btech = (await add_course(client, "B.Tech")).json()["id"]
    await add_specialization(client, "ECE", btech)
    await add_specialization(client, "CSE", btech)
    await add_specialization(client, "AI", mca)

    r = await client.get("/api/v1/courses")
    assert r.status_code == 200
    body = r.json()
    assert [c["name"] for c in body] == ["B.Tech", "MCA"]
    assert [s["name"] for s in body[0]["specializations"]] == ["CSE", "ECE"]
    assert [s["name"] for s in body[1]["specializations"]] == ["AI"]


async def test_unknown_type_rejected(client):
    r = await client.post(
        "/api/v1/courses", json={"type": "department", "name": "Physics"}
    )
    assert r.status_code == 400
    assert "error" in r.json()


async def test_specialization_requires_course_id(client):
    r = await client.post(
        "/api/v1/courses", json={"type": "specialization", "name": "CSE"}
    )
    assert r.status_code == 400
    assert "courseId" in r.json()["details"]


async def test_specialization_for_unknown_course(client):
    r = await add_specialization(client, "CSE", 999)
    assert r.status_code == 400
    assert r.json()["error"] == "Course not found"


async def test_blank_name_rejected(client):
    r = await add_course(client, "   ")
    assert r.status_code == 400
