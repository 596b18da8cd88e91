from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session

from inventory_planner.config import config
from inventory_planner.exceptions import DatabaseError
from inventory_planner.logging_setup import get_logger

logger = get_logger(__name__)


class Database:
    """Holds the engine and session registry for the planner database."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._engine = None
        self._sessions = None
        self._initialized = True

    def initialize(self, connection_string=None):
        """Bind to a database, replacing any previous binding.

        Args:
            connection_string: SQLAlchemy URL; defaults to DATABASE.url

        Raises:
            DatabaseError: If no engine can be created for the URL
        """
        url = connection_string or config.get_db_url()
        self.close()

        try:
            self._engine = create_engine(url, echo=config.get_boolean('DATABASE', 'echo', False))
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseError(f"Could not create engine for {url}: {str(e)}")

        self._sessions = scoped_session(sessionmaker(bind=self._engine))
        logger.debug(f"Bound to {self._engine.url.render_as_string(hide_password=True)}")

    def close(self):
        """Release pooled connections and forget the current binding."""
        if self._sessions is not None:
            self._sessions.remove()
            self._sessions = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def create_all_tables(self):
        """Create the snapshot, purchase order and settings tables if missing."""
        from inventory_planner.models import Base
        Base.metadata.create_all(self.engine)

    @property
    def session(self):
        """Session registry, binding to the configured URL on first use."""
        if self._sessions is None:
            self.initialize()
        return self._sessions

    @property
    def engine(self):
        if self._engine is None:
            self.initialize()
        return self._engine

    @contextmanager
    def session_scope(self):
        """Commit on success, roll back and re-raise on any error."""
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.warning(f"Rolled back transaction: {str(e)}")
            raise
        finally:
            session.close()


# Global database instance
db = Database()


@contextmanager
def session_scope():
    """Transactional scope on the global database."""
    with db.session_scope() as session:
        yield session
