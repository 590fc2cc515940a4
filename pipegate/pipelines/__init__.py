"""Built-in pipeline definitions.

Exports:
    IMPLEMENT_FEATURE: Feature description to reviewed implementation.
    FIX_TESTS: Failing tests to proposed fixes.
    NEW_SERVICE: Service scaffolding from a description.
    BUILTIN_PIPELINES: All of the above, in that order.
"""

from pipegate.pipelines.fix_tests import FIX_TESTS
from pipegate.pipelines.implement_feature import IMPLEMENT_FEATURE
from pipegate.pipelines.new_service import NEW_SERVICE
from pipegate.pipelines.utils import step_data


BUILTIN_PIPELINES = (IMPLEMENT_FEATURE, FIX_TESTS, NEW_SERVICE)


__all__ = [
    "BUILTIN_PIPELINES",
    "FIX_TESTS",
    "IMPLEMENT_FEATURE",
    "NEW_SERVICE",
    "step_data",
]
