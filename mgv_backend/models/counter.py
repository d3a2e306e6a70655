# mgv_backend/models/counter.py
from . import db


class Counter(db.Model):
    """Named sequence. Rows are created by the first increment and never deleted."""
    __tablename__ = "counters"

    name = db.Column(db.String(64), primary_key=True)
    seq = db.Column(db.BigInteger, nullable=False, default=0)

    def __repr__(self):
        return f"<Counter {self.name}={self.seq}>"
