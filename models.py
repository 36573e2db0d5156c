from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

class HistoryEntry(db.Model):
    __tablename__ = "history_entries"

    id = db.Column(db.Integer, primary_key=True)
    city_name = db.Column(db.String(120), nullable=False, index=True)
    temp_celsius = db.Column(db.Float, nullable=False)
    icon_code = db.Column(db.String(8), nullable=True)
    description = db.Column(db.String(255), nullable=True)

    # naive UTC; written only by HistoryStore
    saved_at = db.Column(db.DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<HistoryEntry {self.id} {self.city_name} {self.saved_at}>"
