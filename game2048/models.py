from game2048 import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import json


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    nickname = db.Column(db.String(64), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    scores = db.relationship('Score', back_populates='user', lazy='dynamic')

    @property
    def display_name(self):
        return self.nickname or self.username

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'nickname': self.display_name,
        }


class Score(db.Model):
    """One accepted submission of a finished (won) run.

    Rows are written once and never updated. The unique constraint on
    session_token is what makes a submission idempotent.
    """
    __tablename__ = 'score'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    identity_hash = db.Column(db.String(64), nullable=False, index=True)
    session_token = db.Column(db.String(36), nullable=False)
    completion_time_ms = db.Column(db.Integer, nullable=False)
    move_count = db.Column(db.Integer, nullable=False)
    final_board = db.Column(db.Text, nullable=True)  # JSON-encoded 4x4 grid
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    user = db.relationship('User', back_populates='scores')

    __table_args__ = (
        db.UniqueConstraint('session_token', name='uq_score_session_token'),
        db.CheckConstraint('completion_time_ms >= 0', name='ck_score_time_nonnegative'),
        db.CheckConstraint('move_count >= 0', name='ck_score_moves_nonnegative'),
        db.Index('ix_score_ranking', 'completion_time_ms', 'move_count'),
    )

    @property
    def board(self):
        return json.loads(self.final_board) if self.final_board else None

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'session_token': self.session_token,
            'completion_time_ms': self.completion_time_ms,
            'move_count': self.move_count,
            'final_board': self.board,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


db.Index('ix_score_user_history', Score.user_id, Score.created_at.desc())
