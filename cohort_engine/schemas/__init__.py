from .cohort import (
    DiscountType,
    CohortStatus,
    EarlyBirdDiscount,
    PricingConfig,
    Coupon,
    CouponUpdate,
    CohortBase,
    CohortCreate,
    CohortUpdate,
    Cohort,
    CohortResponse
)

from .lesson import (
    LessonBase,
    LessonCreate,
    Lesson,
    LessonRelease,
    LessonAvailability
)

from .progress import (
    LessonProgress,
    ProgressUpdate,
    VideoProgress,
    StreakData,
    EnrollmentStatus,
    Enrollment
)

from .pricing import (
    PricingResult,
    CouponValidationResult,
    RedemptionResult,
    CouponCodeRequest,
    PricingDisplay,
    CheckoutSession
)

from .community import (
    EngagementTier,
    CommunityStats,
    UserActivity,
    UserStatusUpdate,
    QuestionCreate,
    Question,
    QuestionAnswer
)
