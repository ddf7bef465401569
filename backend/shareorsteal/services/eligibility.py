from datetime import datetime
from zoneinfo import ZoneInfo

from shareorsteal import db
from shareorsteal.models import DevicePlay


class PlayGate:
    """One round per device per calendar day, keyed in a fixed time zone.

    Each call opens its own app context so it can be used from Socket.IO
    background tasks as well as from request handlers.
    """

    def __init__(self, app, tz_name: str = 'Europe/Dublin'):
        self.app = app
        self.tz = ZoneInfo(tz_name)

    def day_key(self, now: datetime = None) -> str:
        now = now or datetime.now(self.tz)
        if now.tzinfo is not None:
            now = now.astimezone(self.tz)
        return now.date().isoformat()

    def may_play(self, device_id: str, now: datetime = None) -> bool:
        if not device_id:
            return True
        with self.app.app_context():
            rec = db.session.get(DevicePlay, device_id)
            return not (rec and rec.last_date == self.day_key(now))

    def record_played(self, device_id: str, now: datetime = None) -> None:
        if not device_id:
            return
        with self.app.app_context():
            try:
                rec = db.session.get(DevicePlay, device_id)
                if rec is None:
                    rec = DevicePlay(device_id=device_id, last_date=self.day_key(now))
                else:
                    rec.last_date = self.day_key(now)
                db.session.add(rec)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
