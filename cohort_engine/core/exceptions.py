from fastapi import HTTPException, status

class CustomHTTPException(HTTPException):
    def __init__(self, detail: str, status_code: int = 400):
        super().__init__(status_code=status_code, detail=detail)

class CohortNotFoundException(CustomHTTPException):
    def __init__(self, cohort_id: str = None):
        detail = f"Cohort with id {cohort_id} not found" if cohort_id else "Cohort not found"
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)

class LessonNotFoundException(CustomHTTPException):
    def __init__(self, lesson_id: str = None):
        detail = f"Lesson with id {lesson_id} not found" if lesson_id else "Lesson not found"
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)

class CouponNotFoundException(CustomHTTPException):
    def __init__(self, code: str = None):
        detail = f"Coupon {code} not found" if code else "Coupon not found"
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)

class DuplicateCouponException(CustomHTTPException):
    def __init__(self, code: str):
        super().__init__(detail=f"Coupon code {code} already exists in this cohort", status_code=status.HTTP_409_CONFLICT)

class InvalidCohortDatesException(CustomHTTPException):
    def __init__(self, detail: str = "Cohort start date must be before end date"):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)

class PricingException(CustomHTTPException):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)

class QuestionNotFoundException(CustomHTTPException):
    def __init__(self, question_id: str = None):
        detail = f"Question with id {question_id} not found" if question_id else "Question not found"
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)

class InvalidCouponException(CustomHTTPException):
    def __init__(self, detail: str = "Invalid coupon data"):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)
