import logging
from typing import List

from sqlalchemy.orm import Session

from cohort_engine.core.clock import Clock, system_clock
from cohort_engine.core.exceptions import QuestionNotFoundException
from cohort_engine.crud import document as crud_document
from cohort_engine.schemas.community import Question, QuestionCreate

logger = logging.getLogger(__name__)

class QuestionService:
    """Вопросы студентов к урокам; из них считаются метрики сообщества"""

    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    def create_question(self, question_data: QuestionCreate) -> Question:
        question = Question(created_at=self.clock.now(), **question_data.model_dump())
        question.id = crud_document.create_document(
            self.db, crud_document.QUESTIONS, question.model_dump(mode="json", exclude={"id"})
        )
        logger.info(f"Question {question.id} created for lesson {question.lesson_id}")
        return question

    def _query(self, filters: dict) -> List[Question]:
        documents = crud_document.query_documents(self.db, crud_document.QUESTIONS, filters)
        questions = [Question.model_validate(data) for data in documents]
        # Новые вопросы первыми
        questions.sort(key=lambda question: question.created_at, reverse=True)
        return questions

    def get_lesson_questions(self, lesson_id: str, include_private: bool = False) -> List[Question]:
        filters = {"lesson_id": lesson_id}
        if not include_private:
            filters["is_public"] = True
        return self._query(filters)

    def get_user_lesson_questions(self, user_id: str, lesson_id: str) -> List[Question]:
        return self._query({"user_id": user_id, "lesson_id": lesson_id})

    def get_recent_course_questions(self, course_id: str, limit: int = 5) -> List[Question]:
        return self._query({"course_id": course_id, "is_public": True})[:limit]

    def answer_question(self, question_id: str, answer: str) -> Question:
        data = crud_document.get_document(self.db, crud_document.QUESTIONS, question_id)
        if not data:
            raise QuestionNotFoundException(question_id)
        question = Question.model_validate(data)
        question.answer = answer
        question.is_answered = True
        question.answered_at = self.clock.now()
        crud_document.set_document(
            self.db, crud_document.QUESTIONS, question_id, question.model_dump(mode="json")
        )
        logger.info(f"Question {question_id} answered")
        return question
