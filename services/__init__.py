"""
services - Business-logic layer sitting between API and DB.
"""

from services.validation import ValidationError                # noqa: F401
from services.reference_service import ReferenceService        # noqa: F401
from services.builds_service import BuildsService              # noqa: F401
from services.lap_times_service import LapTimesService         # noqa: F401
from services.run_lists_service import RunListsService         # noqa: F401
