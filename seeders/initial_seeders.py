from models import factory_session
from seeders.initial_events import initial_events


def initial_seeders():
    with factory_session() as session:
        initial_events(db=session, is_commit=True)
