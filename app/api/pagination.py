from datetime import datetime
from typing import Annotated

from fastapi import Query

LimitParam = Annotated[int, Query(ge=1, le=100)]
OffsetParam = Annotated[int, Query(ge=0)]

# booking list range bounds, compared against start_at
RangeStartParam = Annotated[datetime | None, Query(alias="start")]
RangeEndParam = Annotated[datetime | None, Query(alias="end")]
