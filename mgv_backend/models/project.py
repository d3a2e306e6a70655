# mgv_backend/models/project.py
from . import db, iso, utcnow


class Project(db.Model):
    """Portfolio entry. Images live in external storage; only {url, public_id} pairs are kept."""
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False, unique=True)
    category = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=False)
    technology_used = db.Column(db.String(255), nullable=False)
    client_industry = db.Column(db.String(120), nullable=False)
    icon = db.Column(db.String(64), nullable=False)
    link = db.Column(db.String(500), nullable=False, default="#")
    images = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Project id={self.id} title={self.title!r}>"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "description": self.description,
            "technology_used": self.technology_used,
            "client_industry": self.client_industry,
            "icon": self.icon,
            "link": self.link or "#",
            "images": list(self.images or []),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
