"""Integration tests for the SQLAlchemy-backed Unit of Work adapter.

Accessor writes are durable as they are issued: leaving the unit of work
without committing, or with an exception, keeps every completed write.
"""

import pytest

from nexushub.adapters.unit_of_work import SqlAlchemyUnitOfWork
from nexushub.interfaces.collection import AddToSet, Update

# pylint: disable=magic-value-comparison


@pytest.mark.parametrize("engine", ["sqlite_engine_file", "postgres_engine"], indirect=True)
def test_writes_are_visible_to_the_next_unit_of_work(engine, make_user):
    user = make_user()
    with SqlAlchemyUnitOfWork(engine) as uow:
        uow.users.insert_one(user)
        uow.commit()

    with SqlAlchemyUnitOfWork(engine) as uow:
        assert uow.users.find_one({"id": user.id}) == user


def test_completed_steps_survive_an_error(sqlite_engine_file, make_user, make_community):
    """A failure after the first write does not undo it."""

    class StepFailed(Exception):
        """Stands in for a failing later step."""

    user = make_user()
    community = make_community(user.id)
    with pytest.raises(StepFailed):
        with SqlAlchemyUnitOfWork(sqlite_engine_file) as uow:
            uow.users.insert_one(user)
            uow.communities.insert_one(community)
            raise StepFailed()

    with SqlAlchemyUnitOfWork(sqlite_engine_file) as uow:
        assert uow.users.count() == 1
        assert uow.communities.count() == 1


def test_each_unit_of_work_has_its_own_connection(sqlite_engine_file, make_user):
    user = make_user()
    first, second = SqlAlchemyUnitOfWork(sqlite_engine_file), SqlAlchemyUnitOfWork(
        sqlite_engine_file
    )
    with first, second:
        assert first.connection is not second.connection
        first.users.insert_one(user)
        second.users.update_one({"id": user.id}, Update(AddToSet("community_ids", user.id)))
        assert first.users.find_one({"id": user.id}).community_ids == (user.id,)
    assert first.connection.closed
