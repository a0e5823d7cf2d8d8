from .document import (
    get_document,
    get_document_with_version,
    set_document,
    create_document,
    query_documents,
    write_batch,
    compare_and_set
)

from .cohort import (
    get_cohort,
    get_cohort_with_version,
    get_cohorts,
    save_cohort,
    save_cohort_if_unchanged
)

from .lesson import (
    get_lesson,
    get_lessons_by_course,
    get_lessons_by_week,
    create_lesson
)
