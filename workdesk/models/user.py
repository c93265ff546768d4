# workdesk/models/user.py
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from ..extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)

    password_hash = db.Column(db.String(255))

    # member|admin
    role = db.Column(db.String(20), nullable=False, default="member", index=True)
    # active|suspended
    status = db.Column(db.String(20), default="active", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
