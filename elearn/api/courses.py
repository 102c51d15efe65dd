"""Catalog endpoints: categories, courses, lessons, reviews and rosters."""

from __future__ import annotations

import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from elearn.api.dependencies import CurrentUser, StoreDep
from elearn.api.errors import domain_errors
from elearn.api.ratelimit import require_rate_limit
from elearn.api.users import UserOut
from elearn.core.config import SETTINGS
from elearn.models.course import Category, Course, Lesson
from elearn.models.enrollment import Enrollment
from elearn.services import catalog_service, enrollment_service, review_service
from elearn.services.review_service import ReviewWithAuthor

router = APIRouter(prefix="/v1", tags=["courses"])


# --- schemas ---


class CategoryIn(BaseModel):
    name: str
    description: str | None = None


class CategoryOut(BaseModel):
    id: str
    name: str
    description: str | None
    created_at: datetime.datetime

    @staticmethod
    def of(c: Category) -> CategoryOut:
        return CategoryOut(
            id=c.id, name=c.name, description=c.description, created_at=c.created_at
        )


class CourseIn(BaseModel):
    title: str
    description: str
    price: Decimal = Decimal("0")
    currency: str = Field(default_factory=lambda: SETTINGS.default_currency)
    level: str = "beginner"
    thumbnail: str | None = None
    category_id: str | None = None
    duration: int | None = None
    is_published: bool = False


class CoursePatch(BaseModel):
    title: str | None = None
    description: str | None = None
    price: Decimal | None = None
    currency: str | None = None
    level: str | None = None
    thumbnail: str | None = None
    category_id: str | None = None
    duration: int | None = None
    is_published: bool | None = None


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    price: Decimal
    currency: str
    level: str
    thumbnail: str | None
    category_id: str | None
    instructor_id: str | None
    duration: int | None
    is_published: bool
    rating: Decimal
    total_enrollments: int
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @staticmethod
    def of(c: Course) -> CourseOut:
        return CourseOut(
            id=c.id,
            title=c.title,
            description=c.description,
            price=c.price,
            currency=c.currency,
            level=c.level,
            thumbnail=c.thumbnail,
            category_id=c.category_id,
            instructor_id=c.instructor_id,
            duration=c.duration,
            is_published=c.is_published,
            rating=c.rating,
            total_enrollments=c.total_enrollments,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )


class LessonIn(BaseModel):
    title: str
    order: int
    description: str | None = None
    content: str | None = None
    video_url: str | None = None
    duration: int | None = None
    is_preview: bool = False


class LessonPatch(BaseModel):
    title: str | None = None
    order: int | None = None
    description: str | None = None
    content: str | None = None
    video_url: str | None = None
    duration: int | None = None
    is_preview: bool | None = None


class LessonOut(BaseModel):
    id: str
    course_id: str
    title: str
    order: int
    description: str | None
    content: str | None
    video_url: str | None
    duration: int | None
    is_preview: bool

    @staticmethod
    def of(lesson: Lesson) -> LessonOut:
        return LessonOut(
            id=lesson.id,
            course_id=lesson.course_id,
            title=lesson.title,
            order=lesson.order,
            description=lesson.description,
            content=lesson.content,
            video_url=lesson.video_url,
            duration=lesson.duration,
            is_preview=lesson.is_preview,
        )


class ReviewIn(BaseModel):
    rating: int
    comment: str | None = None


class ReviewOut(BaseModel):
    id: str
    course_id: str
    user_id: str
    rating: int
    comment: str | None
    created_at: datetime.datetime
    author: UserOut | None = None

    @staticmethod
    def of(item: ReviewWithAuthor) -> ReviewOut:
        r = item.review
        return ReviewOut(
            id=r.id,
            course_id=r.course_id,
            user_id=r.user_id,
            rating=r.rating,
            comment=r.comment,
            created_at=r.created_at,
            author=UserOut.of(item.author) if item.author is not None else None,
        )


class CourseDetailOut(CourseOut):
    lessons: list[LessonOut]
    reviews: list[ReviewOut]


class RosterEntryOut(BaseModel):
    id: str
    user_id: str
    progress: Decimal
    enrolled_at: datetime.datetime
    completed_at: datetime.datetime | None

    @staticmethod
    def of(e: Enrollment) -> RosterEntryOut:
        return RosterEntryOut(
            id=e.id,
            user_id=e.user_id,
            progress=e.progress,
            enrolled_at=e.enrolled_at,
            completed_at=e.completed_at,
        )


# --- categories ---


@router.get("/categories", response_model=list[CategoryOut])
async def list_categories(store: StoreDep) -> list[CategoryOut]:
    return [CategoryOut.of(c) for c in await catalog_service.list_categories(store)]


@router.post(
    "/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED
)
async def create_category(
    payload: CategoryIn, principal: CurrentUser, store: StoreDep
) -> CategoryOut:
    with domain_errors():
        category = await catalog_service.create_category(
            store, principal, name=payload.name, description=payload.description
        )
    return CategoryOut.of(category)


# --- courses ---


@router.get("/courses", response_model=list[CourseOut])
async def list_courses(store: StoreDep) -> list[CourseOut]:
    return [CourseOut.of(c) for c in await catalog_service.list_published_courses(store)]


@router.get("/courses/mine", response_model=list[CourseOut])
async def list_my_courses(principal: CurrentUser, store: StoreDep) -> list[CourseOut]:
    courses = await catalog_service.list_instructor_courses(store, principal.user_id)
    return [CourseOut.of(c) for c in courses]


@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseIn, principal: CurrentUser, store: StoreDep
) -> CourseOut:
    with domain_errors():
        course = await catalog_service.create_course(
            store, principal, **payload.model_dump()
        )
    return CourseOut.of(course)


@router.get("/courses/{course_id}", response_model=CourseDetailOut)
async def get_course(course_id: str, store: StoreDep) -> CourseDetailOut:
    with domain_errors():
        detail = await catalog_service.get_course_detail(store, course_id)
    return CourseDetailOut(
        **CourseOut.of(detail.course).model_dump(),
        lessons=[LessonOut.of(lesson) for lesson in detail.lessons],
        reviews=[ReviewOut.of(r) for r in detail.reviews],
    )


@router.patch("/courses/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: str, payload: CoursePatch, principal: CurrentUser, store: StoreDep
) -> CourseOut:
    with domain_errors():
        course = await catalog_service.update_course(
            store, principal, course_id, **payload.model_dump(exclude_unset=True)
        )
    return CourseOut.of(course)


@router.delete("/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: str, principal: CurrentUser, store: StoreDep
) -> Response:
    with domain_errors():
        await catalog_service.delete_course(store, principal, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- lessons ---


@router.post(
    "/courses/{course_id}/lessons",
    response_model=LessonOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_lesson(
    course_id: str, payload: LessonIn, principal: CurrentUser, store: StoreDep
) -> LessonOut:
    with domain_errors():
        lesson = await catalog_service.create_lesson(
            store, principal, course_id, **payload.model_dump()
        )
    return LessonOut.of(lesson)


@router.patch("/lessons/{lesson_id}", response_model=LessonOut)
async def update_lesson(
    lesson_id: str, payload: LessonPatch, principal: CurrentUser, store: StoreDep
) -> LessonOut:
    with domain_errors():
        lesson = await catalog_service.update_lesson(
            store, principal, lesson_id, **payload.model_dump(exclude_unset=True)
        )
    return LessonOut.of(lesson)


@router.delete("/lessons/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(
    lesson_id: str, principal: CurrentUser, store: StoreDep
) -> Response:
    with domain_errors():
        await catalog_service.delete_lesson(store, principal, lesson_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- reviews ---


@router.get("/courses/{course_id}/reviews", response_model=list[ReviewOut])
async def list_reviews(course_id: str, store: StoreDep) -> list[ReviewOut]:
    with domain_errors():
        await catalog_service.get_course(store, course_id)
        reviews = await review_service.list_reviews(store, course_id)
    return [ReviewOut.of(r) for r in reviews]


@router.post(
    "/courses/{course_id}/reviews",
    response_model=ReviewOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit("review"))],
)
async def submit_review(
    course_id: str, payload: ReviewIn, principal: CurrentUser, store: StoreDep
) -> ReviewOut:
    with domain_errors():
        review = await review_service.submit_review(
            store,
            principal.user_id,
            course_id,
            rating=payload.rating,
            comment=payload.comment,
        )
        author = await store.users.get_by_id(principal.user_id)
    return ReviewOut.of(ReviewWithAuthor(review=review, author=author))


# --- roster ---


@router.get("/courses/{course_id}/enrollments", response_model=list[RosterEntryOut])
async def list_course_enrollments(
    course_id: str,
    principal: CurrentUser,
    store: StoreDep,
) -> list[RosterEntryOut]:
    with domain_errors():
        enrollments = await enrollment_service.list_course_enrollments(
            store, principal, course_id
        )
    return [RosterEntryOut.of(e) for e in enrollments]
