import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.crud import cohort as crud_cohort
from cohort_engine.crud import document as crud_document
from cohort_engine.schemas.progress import Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)

class EnrollmentService:
    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    def create_enrollment(self, user_id: str, course_id: str, cohort_id: str) -> Enrollment:
        enrollment = Enrollment(
            user_id=user_id,
            course_id=course_id,
            cohort_id=cohort_id,
            status=EnrollmentStatus.ACTIVE,
            enrolled_at=self.clock.now(),
        )
        enrollment_id = crud_document.create_document(
            self.db, crud_document.ENROLLMENTS, enrollment.model_dump(mode="json", exclude={"id"})
        )
        enrollment.id = enrollment_id
        logger.info(f"Enrollment {enrollment_id} created for user {user_id} in cohort {cohort_id}")

        # Счетчик студентов обновляется отдельной записью
        self.update_cohort_student_count(cohort_id, 1)
        return enrollment

    def update_cohort_student_count(self, cohort_id: str, increment: int) -> None:
        try:
            cohort = crud_cohort.get_cohort(self.db, cohort_id)
            if not cohort:
                logger.warning(f"Cohort {cohort_id} not found while updating student count")
                return
            cohort.current_students = max(0, cohort.current_students + increment)
            crud_cohort.save_cohort(self.db, cohort)
        except SQLAlchemyError:
            logger.exception(f"Failed to update student count for cohort {cohort_id}")

    def update_enrollment_status(self, enrollment_id: str, status: EnrollmentStatus) -> Optional[Enrollment]:
        data = crud_document.get_document(self.db, crud_document.ENROLLMENTS, enrollment_id)
        if not data:
            return None
        enrollment = Enrollment.model_validate(data)
        enrollment.status = status
        if status == EnrollmentStatus.COMPLETED:
            enrollment.completed_at = self.clock.now()
        crud_document.set_document(
            self.db, crud_document.ENROLLMENTS, enrollment_id, enrollment.model_dump(mode="json")
        )
        return enrollment

    def get_user_enrollments(self, user_id: str) -> List[Enrollment]:
        documents = crud_document.query_documents(
            self.db, crud_document.ENROLLMENTS, {"user_id": user_id}
        )
        return [Enrollment.model_validate(data) for data in documents]

    def get_cohort_member_ids(self, cohort_id: str) -> List[str]:
        """Идентификаторы студентов с активной записью в когорту"""
        documents = crud_document.query_documents(
            self.db,
            crud_document.ENROLLMENTS,
            {"cohort_id": cohort_id, "status": EnrollmentStatus.ACTIVE.value}
        )
        member_ids = []
        for data in documents:
            if data["user_id"] not in member_ids:
                member_ids.append(data["user_id"])
        return member_ids
