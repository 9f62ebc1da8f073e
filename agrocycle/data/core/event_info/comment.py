from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle import db


class Comment(UserCreatedBase):
    __tablename__ = 'comments'

    content = db.Column(db.Text, nullable=False)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False)

    # True for manually inserted comments, False for machine-generated
    is_human_made = db.Column(db.Boolean, default=False)

    event = db.relationship('Event', backref='comments')

    def get_content_preview(self, max_length=100):
        """Get a preview of the comment content"""
        if len(self.content) <= max_length:
            return self.content
        return self.content[:max_length] + "..."

    def __repr__(self):
        preview = self.get_content_preview(50)
        return f'<Comment {self.id}: {preview}>'
