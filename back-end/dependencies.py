"""
Collaborator wiring for the API.

ENROLLMENT_STORE selects the backend for every store: "memory" (default,
optionally seeded with sample data) or "mongo". The enrollment service is a
process-wide singleton so all requests share its locks.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from repositories.clock import SystemClock
from repositories.interfaces import (
    ClassSectionStore,
    Clock,
    CourseCatalog,
    CoursePolicy,
    EnrollmentStore,
    RefreshTokenStore,
    StudentRecords,
    UserStore,
)
from services.enrollment_rule_checker import EnrollmentRuleChecker
from services.enrollment_service import EnrollmentService
from services.rule_checkers import STORE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

ENROLLMENT_STORE = os.getenv("ENROLLMENT_STORE", "memory").lower()
SEED_SAMPLE_DATA = os.getenv("SEED_SAMPLE_DATA", "true").lower() in ("1", "true", "yes")

@dataclass
class Stores:
    enrollment_store: EnrollmentStore
    course_catalog: CourseCatalog
    course_policy: CoursePolicy
    student_records: StudentRecords
    section_store: ClassSectionStore
    user_store: UserStore
    refresh_token_store: RefreshTokenStore
    clock: Clock

def build_memory_stores(seed: bool = SEED_SAMPLE_DATA, clock: Optional[Clock] = None) -> Stores:
    from repositories.memory import (
        InMemoryClassSectionStore,
        InMemoryCourseCatalog,
        InMemoryEnrollmentStore,
        InMemoryRefreshTokenStore,
        InMemoryStudentRecords,
        InMemoryUserStore,
    )

    catalog = InMemoryCourseCatalog()
    stores = Stores(
        enrollment_store=InMemoryEnrollmentStore(),
        course_catalog=catalog,
        course_policy=catalog,
        student_records=InMemoryStudentRecords(),
        section_store=InMemoryClassSectionStore(),
        user_store=InMemoryUserStore(),
        refresh_token_store=InMemoryRefreshTokenStore(),
        clock=clock or SystemClock(),
    )
    if seed:
        from seed_data import seed_memory_stores
        seed_memory_stores(stores)
    return stores

def build_mongo_stores(clock: Optional[Clock] = None) -> Stores:
    from repositories.mongo import (
        MongoClassSectionStore,
        MongoCourseCatalog,
        MongoEnrollmentStore,
        MongoRefreshTokenStore,
        MongoStudentRecords,
        MongoUserStore,
    )

    catalog = MongoCourseCatalog()
    return Stores(
        enrollment_store=MongoEnrollmentStore(),
        course_catalog=catalog,
        course_policy=catalog,
        student_records=MongoStudentRecords(),
        section_store=MongoClassSectionStore(),
        user_store=MongoUserStore(),
        refresh_token_store=MongoRefreshTokenStore(),
        clock=clock or SystemClock(),
    )

def build_stores(backend: str = ENROLLMENT_STORE) -> Stores:
    if backend == "mongo":
        logger.info("Using MongoDB stores")
        return build_mongo_stores()
    if backend != "memory":
        raise ValueError(f"Unknown ENROLLMENT_STORE backend: {backend}")
    logger.info("Using in-memory stores")
    return build_memory_stores()

_stores: Optional[Stores] = None
_enrollment_service: Optional[EnrollmentService] = None

def set_stores(stores: Optional[Stores]) -> None:
    """Replace the active stores (None rebuilds from the environment on next use)"""
    global _stores, _enrollment_service
    _stores = stores
    _enrollment_service = None

def get_stores() -> Stores:
    global _stores
    if _stores is None:
        _stores = build_stores()
    return _stores

def get_rule_checker() -> EnrollmentRuleChecker:
    stores = get_stores()
    return EnrollmentRuleChecker.from_stores(
        stores.enrollment_store,
        stores.course_catalog,
        stores.student_records,
        stores.section_store,
        stores.course_policy,
        stores.clock,
        timeout=STORE_TIMEOUT_SECONDS,
    )

def get_enrollment_service() -> EnrollmentService:
    global _enrollment_service
    if _enrollment_service is None:
        stores = get_stores()
        _enrollment_service = EnrollmentService(get_rule_checker(), stores.enrollment_store, stores.section_store)
    return _enrollment_service
