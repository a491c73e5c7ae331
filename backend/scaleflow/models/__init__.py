# Import models here so Alembic can discover metadata.
from scaleflow.models.company import Company  # noqa: F401
from scaleflow.models.user import User  # noqa: F401

# Scheduling
from scaleflow.models.shift import Shift  # noqa: F401
from scaleflow.models.shift_template import ShiftTemplate  # noqa: F401
from scaleflow.models.preference import Preference  # noqa: F401
from scaleflow.models.swap_request import SwapRequest  # noqa: F401

# Onboarding
from scaleflow.models.invitation import Invitation  # noqa: F401

# Reporting
from scaleflow.models.workload import WorkloadMetric, WorkloadTemplate  # noqa: F401
