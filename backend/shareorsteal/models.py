from datetime import datetime, timezone

from shareorsteal import db


def _utcnow():
    return datetime.now(timezone.utc)


class DevicePlay(db.Model):
    """Last calendar day on which a device finished a round."""
    __tablename__ = 'device_play'
    device_id = db.Column(db.String(64), primary_key=True)
    last_date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD in the play-day zone
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            'device_id': self.device_id,
            'last_date': self.last_date,
        }
