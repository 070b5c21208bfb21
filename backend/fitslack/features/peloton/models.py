"""
Peloton-related database models.

Models:
- PelotonConnection: Session credentials + Slack link per Peloton user
- PostedWorkout: Append-only dedupe set of workouts posted to Slack
"""

from sqlalchemy import Column, DateTime, String, Text

from fitslack.models.base import Base, utcnow


class PelotonConnection(Base):
    """
    Peloton user connection.

    The password is never stored; only the session returned by login.
    """

    __tablename__ = "peloton_connections"

    peloton_user_id = Column(String(64), primary_key=True)

    # Session credential (replaced on every login)
    session_id = Column(Text, nullable=True)

    # Profile (display only, used in workout URLs)
    username = Column(String(100), nullable=True)

    # Slack link
    slack_user_id = Column(String(32), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<PelotonConnection {self.peloton_user_id} slack={self.slack_user_id}>"


class PostedWorkout(Base):
    """Workout already posted to Slack. Write-once."""

    __tablename__ = "posted_workouts"

    workout_id = Column(String(64), primary_key=True)
    slack_user_id = Column(String(32), nullable=True)
    posted_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<PostedWorkout {self.workout_id}>"
