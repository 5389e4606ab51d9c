from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def dialect_insert(session: Session):
    """`insert` construct with ON CONFLICT support for the bound database.

    Production runs on postgres, tests run on sqlite.
    """
    if session.get_bind().dialect.name == "sqlite":
        return sqlite.insert
    return postgresql.insert
