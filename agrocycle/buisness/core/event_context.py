"""
Event Context
Provides a clean interface for reading and appending to a timeline event.
"""

from typing import List, Union
from agrocycle import db
from agrocycle.data.core.event_info.event import Event
from agrocycle.data.core.event_info.comment import Comment


class EventContext:
    """
    Context for event operations.

    Provides a clean interface for:
    - Accessing the event and its comments
    - Adding comments to the event
    """

    def __init__(self, event: Union[Event, int]):
        """
        Initialize EventContext with an Event instance or event ID.

        Args:
            event: Event instance or event ID
        """
        if isinstance(event, int):
            self._event = db.session.get(Event, event)
            self._event_id = event
        else:
            self._event = event
            self._event_id = event.id

        self._comments = None

    @property
    def event(self) -> Event:
        """Get the Event instance"""
        return self._event

    @property
    def event_id(self) -> int:
        """Get the event ID"""
        return self._event_id

    @property
    def comments(self) -> List[Comment]:
        """
        Get all comments for this event, oldest first.

        Returns:
            List of Comment objects ordered chronologically
        """
        if self._comments is None:
            self._comments = (
                Comment.query.filter_by(event_id=self._event_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc())
                .all()
            )
        return self._comments

    def add_comment(self, user_id: int, content: str, is_human_made: bool = False) -> Comment:
        """
        Append a comment to the event.

        Args:
            user_id: Actor adding the comment
            content: Comment text
            is_human_made: False for narrator-generated timeline entries

        Returns:
            Comment: The flushed comment
        """
        comment = Comment(
            content=content,
            event_id=self._event_id,
            is_human_made=is_human_made,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        db.session.add(comment)
        db.session.flush()
        self._comments = None
        return comment

    def timeline(self) -> List[dict]:
        return [
            {
                'at': c.created_at.isoformat() if c.created_at else None,
                'actor_id': c.created_by_id,
                'content': c.content,
                'is_human_made': c.is_human_made,
            }
            for c in self.comments
        ]
