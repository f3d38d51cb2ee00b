"""FastAPI dependency injection for the database handle.

The ``Database`` built at startup lives on ``app.state.database``; route
dependencies reach it through the request instead of a global, which keeps
it replaceable per application instance.
"""

from typing import Annotated

from fastapi import Depends, Request

from itemkit.infrastructure.database.session import Database


def get_database(request: Request) -> Database:
    """Return the database handle of the running application.

    Raises:
        RuntimeError: If the application was built without a database.
    """
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        msg = "Application state has no database handle"
        raise RuntimeError(msg)
    return database


# Type alias for cleaner dependency injection
DatabaseHandle = Annotated[Database, Depends(get_database)]
