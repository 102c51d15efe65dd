"""Catalog: categories, courses and lessons.

Authoring is open to instructors and admins; a course (and its lessons)
can only be changed by its instructor or an admin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from elearn.core.errors import NotFoundError, PermissionDenied, ValidationError
from elearn.models.base import require_choice, require_text, utcnow
from elearn.models.course import (
    COURSE_LEVELS,
    Category,
    Course,
    Lesson,
    non_negative_minutes,
    normalize_currency,
    normalize_price,
)
from elearn.models.principal import Principal
from elearn.repos.store import EntityStore
from elearn.services.review_service import ReviewWithAuthor, list_reviews

logger = logging.getLogger(__name__)

AUTHOR_ROLES = {"instructor", "admin"}


@dataclass(frozen=True, slots=True)
class CourseDetail:
    course: Course
    lessons: list[Lesson]
    reviews: list[ReviewWithAuthor]


def _require_author(principal: Principal) -> None:
    if not principal.has_any_role(AUTHOR_ROLES):
        logger.warning("Rejected authoring by non-instructor user=%s", principal.user_id)
        raise PermissionDenied("instructor or admin role required")


def require_course_owner(principal: Principal, course: Course) -> None:
    if principal.is_admin() or course.instructor_id == principal.user_id:
        return
    logger.warning(
        "Rejected change to course=%s by non-owner user=%s", course.id, principal.user_id
    )
    raise PermissionDenied("only the course instructor may change this course")


async def _check_category(store: EntityStore, category_id: str | None) -> None:
    if category_id is not None and await store.courses.get_category(category_id) is None:
        raise ValidationError("unknown category")


# --- categories ---


async def create_category(
    store: EntityStore, principal: Principal, *, name: str, description: str | None = None
) -> Category:
    _require_author(principal)
    category = Category.new(name=name, description=description)
    await store.courses.add_category(category)
    logger.info("Created category id=%s name=%s", category.id, category.name)
    return category


async def list_categories(store: EntityStore) -> list[Category]:
    return await store.courses.list_categories()


# --- courses ---


async def create_course(
    store: EntityStore, principal: Principal, **fields: Any
) -> Course:
    _require_author(principal)
    course = Course.new(instructor_id=principal.user_id, **fields)
    async with store.transaction():
        await _check_category(store, course.category_id)
        await store.courses.add_course(course)
    logger.info("Created course id=%s instructor=%s", course.id, principal.user_id)
    return course


async def get_course(store: EntityStore, course_id: str) -> Course:
    course = await store.courses.get_course(course_id)
    if course is None:
        raise NotFoundError("course", course_id)
    return course


async def get_course_detail(store: EntityStore, course_id: str) -> CourseDetail:
    course = await get_course(store, course_id)
    return CourseDetail(
        course=course,
        lessons=await store.courses.list_lessons(course_id),
        reviews=await list_reviews(store, course_id),
    )


async def list_published_courses(store: EntityStore) -> list[Course]:
    return await store.courses.list_published()


async def list_instructor_courses(store: EntityStore, instructor_id: str) -> list[Course]:
    return await store.courses.list_by_instructor(instructor_id)


def _normalize_course_fields(fields: dict[str, Any]) -> dict[str, Any]:
    out = dict(fields)
    if "title" in out:
        out["title"] = require_text("title", out["title"])
    if "description" in out:
        out["description"] = require_text("description", out["description"])
    if "price" in out:
        out["price"] = normalize_price(out["price"])
    if "currency" in out:
        out["currency"] = normalize_currency(out["currency"])
    if "level" in out:
        out["level"] = require_choice("level", out["level"], COURSE_LEVELS)
    if "duration" in out:
        out["duration"] = non_negative_minutes("duration", out["duration"])
    return out


async def update_course(
    store: EntityStore, principal: Principal, course_id: str, **fields: Any
) -> Course:
    fields = _normalize_course_fields(fields)
    async with store.transaction():
        course = await get_course(store, course_id)
        require_course_owner(principal, course)
        if "category_id" in fields:
            await _check_category(store, fields["category_id"])
        updated = await store.courses.update_course(course_id, **fields)
    if updated is None:
        raise NotFoundError("course", course_id)
    logger.info("Updated course id=%s fields=%s", course_id, sorted(fields))
    return updated


async def delete_course(store: EntityStore, principal: Principal, course_id: str) -> None:
    async with store.transaction():
        course = await get_course(store, course_id)
        require_course_owner(principal, course)
        await store.courses.soft_delete_course(course_id, utcnow())
    logger.info("Deleted course id=%s by user=%s", course_id, principal.user_id)


# --- lessons ---


async def create_lesson(
    store: EntityStore, principal: Principal, course_id: str, **fields: Any
) -> Lesson:
    lesson = Lesson.new(course_id=course_id, **fields)
    async with store.transaction():
        course = await get_course(store, course_id)
        require_course_owner(principal, course)
        await store.courses.add_lesson(lesson)
    logger.info(
        "Created lesson id=%s course=%s order=%d", lesson.id, course_id, lesson.order
    )
    return lesson


async def list_lessons(store: EntityStore, course_id: str) -> list[Lesson]:
    await get_course(store, course_id)
    return await store.courses.list_lessons(course_id)


async def get_lesson(store: EntityStore, lesson_id: str) -> Lesson:
    lesson = await store.courses.get_lesson(lesson_id)
    if lesson is None:
        raise NotFoundError("lesson", lesson_id)
    return lesson


def _normalize_lesson_fields(fields: dict[str, Any]) -> dict[str, Any]:
    out = dict(fields)
    if "title" in out:
        out["title"] = require_text("title", out["title"])
    if "duration" in out:
        out["duration"] = non_negative_minutes("duration", out["duration"])
    if "order" in out and (out["order"] is None or out["order"] < 0):
        raise ValidationError("order must be >= 0")
    return out


async def update_lesson(
    store: EntityStore, principal: Principal, lesson_id: str, **fields: Any
) -> Lesson:
    fields = _normalize_lesson_fields(fields)
    async with store.transaction():
        lesson = await get_lesson(store, lesson_id)
        require_course_owner(principal, await get_course(store, lesson.course_id))
        updated = await store.courses.update_lesson(lesson_id, **fields)
    if updated is None:
        raise NotFoundError("lesson", lesson_id)
    logger.info("Updated lesson id=%s fields=%s", lesson_id, sorted(fields))
    return updated


async def delete_lesson(store: EntityStore, principal: Principal, lesson_id: str) -> None:
    async with store.transaction():
        lesson = await get_lesson(store, lesson_id)
        require_course_owner(principal, await get_course(store, lesson.course_id))
        await store.courses.soft_delete_lesson(lesson_id, utcnow())
    logger.info("Deleted lesson id=%s by user=%s", lesson_id, principal.user_id)
