from datetime import datetime
from typing import Annotated
from pydantic import AfterValidator
from cohort_engine.utils.timeutils import ensure_utc

# Все моменты времени хранятся и сравниваются в UTC
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
