"""site_pdf.render: navigation, output paths and the per-task runner."""
from .models import (  # noqa: F401
    NavigationFailure,
    NavigationOutcome,
    NavigationSuccess,
    PageTask,
    TaskOutcome,
    TaskResult,
)
from .navigation import NavigationTracker  # noqa: F401
from .paths import (  # noqa: F401
    ResolvedPath,
    filepath_to_pathname,
    open_exclusive,
    pathname_to_filepath,
    resolve_pathname,
)
from .task import TaskRunner  # noqa: F401
