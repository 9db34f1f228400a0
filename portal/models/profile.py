# portal/models/profile.py
from portal.extensions import db
from portal.models._time import utcnow


class Profile(db.Model):
    """
    Obchodní a kontaktní údaje zákazníka. Klíč `id` je id uživatele
    u identity providera (1:1), hesla tady neevidujeme.
    """
    __tablename__ = "profiles"

    id = db.Column(db.String(64), primary_key=True)
    email = db.Column(db.String(255), nullable=True, index=True)
    full_name = db.Column(db.String(150), nullable=True)
    company = db.Column(db.String(150), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    orders = db.relationship("Order", back_populates="profile", lazy=True)

    def __repr__(self):
        return f"<Profile {self.id} email={self.email} admin={self.is_admin}>"
