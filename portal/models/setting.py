from datetime import datetime
from ..extensions import db


class PlatformSetting(db.Model):
    __tablename__ = "platform_setting"

    key = db.Column(db.String(120), primary_key=True)
    value = db.Column(db.Text, nullable=False)  # JSON text
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<PlatformSetting {self.key}>"
