from agrocycle import db
from datetime import datetime
from agrocycle.data.core.user_created_base import UserCreatedBase


class Event(UserCreatedBase):
    __tablename__ = 'events'

    event_type = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow)
    actor_id = db.Column(db.Integer, nullable=True)
    hub_id = db.Column(db.Integer, db.ForeignKey('hubs.id'), nullable=True)
    status = db.Column(db.String(20), nullable=True)

    hub = db.relationship('Hub')

    def __repr__(self):
        return f'<Event {self.event_type}: {self.description}>'

    @classmethod
    def add_event(cls, event_type, description, actor_id=None, hub_id=None, status=None):
        """
        Create and flush a new event

        Args:
            event_type (str): Type of event
            description (str): Event description
            actor_id (int, optional): Actor who triggered the event
            hub_id (int, optional): Related hub ID
            status (str, optional): Event status

        Returns:
            int: The ID of the created event
        """
        event = cls(
            event_type=event_type,
            description=description,
            actor_id=actor_id,
            hub_id=hub_id,
            status=status,
            created_by_id=actor_id,
            updated_by_id=actor_id,
        )

        db.session.add(event)
        db.session.flush()  # Get the ID without committing
        return event.id
