"""FastAPI dependency injection for the settings synchronizer.

The synchronizer is built once in the application lifespan and stored on
``app.state``; handlers receive it through :data:`SynchronizerDep` instead of
importing a module-level singleton, so tests can run several isolated
applications side by side.
"""

from typing import Annotated

from fastapi import Depends, Request

from src.core.exceptions import ErrorCode, VatCalcError
from src.domain.settings.synchronizer import SettingsSynchronizer


def get_synchronizer(request: Request) -> SettingsSynchronizer:
    """Return the process-wide synchronizer.

    Raises:
        VatCalcError: If the application lifespan has not started.
    """
    synchronizer: SettingsSynchronizer | None = getattr(
        request.app.state, "synchronizer", None
    )
    if synchronizer is None:
        raise VatCalcError(
            ErrorCode.INTERNAL_ERROR, "Settings synchronizer is not running"
        )
    return synchronizer


# Type alias for cleaner dependency injection
SynchronizerDep = Annotated[SettingsSynchronizer, Depends(get_synchronizer)]
