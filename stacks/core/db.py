import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from stacks.configs import DB_URI, DEBUG
from stacks.core.exceptions import BusyError

logger = logging.getLogger(__name__)

# lock_not_available, serialization_failure, deadlock_detected
LOCK_CONTENTION_PGCODES = {'55P03', '40001', '40P01'}


def make_engine(uri=DB_URI, echo=DEBUG):
    # Only use client_encoding for PostgreSQL, not SQLite
    engine_kwargs = {'echo': echo}
    if uri.startswith('sqlite'):
        engine_kwargs['connect_args'] = {'check_same_thread': False}
        if ':memory:' in uri:
            engine_kwargs['poolclass'] = StaticPool
    else:
        engine_kwargs['client_encoding'] = 'utf8'
    return create_engine(uri, **engine_kwargs)


def make_session_factory(bind):
    return sessionmaker(
        bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


engine = make_engine()
SessionLocal = make_session_factory(engine)
session = scoped_session(SessionLocal)


class StacksBase:
    @classmethod
    def get_many(cls, db_session=None, order_by=None):
        query = (db_session or session).query(cls)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.all()


Base = declarative_base(cls=StacksBase)


def init(bind=engine):
    try:
        Base.metadata.create_all(bind=bind)
        return session
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {e}")


def is_lock_contention(e: OperationalError) -> bool:
    """True for lock waits that ran out of time or lost a serialization race."""
    orig = getattr(e, 'orig', None)
    if getattr(orig, 'pgcode', None) in LOCK_CONTENTION_PGCODES:
        return True
    return 'database is locked' in str(orig).lower()


@contextmanager
def session_scope(session_factory=SessionLocal, lock_timeout=None):
    """Runs the block in one transaction on a fresh session.

    Commits on success, rolls back on any exception. Lock contention
    reported by the database surfaces as BusyError.
    """
    db_session = session_factory()
    try:
        if lock_timeout and db_session.get_bind().dialect.name == 'postgresql':
            db_session.execute(
                text(f"SET LOCAL lock_timeout = '{int(lock_timeout * 1000)}ms'"))
        yield db_session
        db_session.commit()
    except OperationalError as e:
        db_session.rollback()
        if is_lock_contention(e):
            logger.warning(f"Database lock contention: {e.orig}")
            raise BusyError("The database is busy, please retry.") from e
        raise
    except Exception:
        db_session.rollback()
        raise
    finally:
        db_session.close()
