# mgv_backend/blueprints/projects.py
from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, InvalidInput, NotFound
from ..models import Project, db
from ..utils.auth import admin_required
from ..utils.payload import text

bp = Blueprint("projects", __name__)

REQUIRED_FIELDS = ("title", "category", "description", "technology_used", "client_industry", "icon")


def _get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found.")
    return project


def _image_refs(raw, field: str):
    """Validate a list of {url, public_id} image references."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidInput(f"{field} must be a list.")
    refs = []
    for ref in raw:
        if not isinstance(ref, dict) or not ref.get("url") or not ref.get("public_id"):
            raise InvalidInput(f"Each entry in {field} needs url and public_id.")
        refs.append({"url": str(ref["url"]), "public_id": str(ref["public_id"])})
    return refs


def _commit_or_conflict():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Project with this title already exists.")


@bp.get("/")
def list_projects():
    try:
        page = max(int(request.args.get("page", 1)), 1)
        limit = max(min(int(request.args.get("limit", 10)), 50), 1)
    except ValueError:
        raise InvalidInput("page and limit must be integers")

    pag = Project.query.order_by(Project.created_at.desc(), Project.id.desc()).paginate(
        page=page, per_page=limit, error_out=False)
    return jsonify({
        "projects": [p.to_dict() for p in pag.items],
        "current_page": pag.page,
        "total_pages": pag.pages,
        "total_projects": pag.total,
    })


@bp.get("/<int:project_id>")
def get_project(project_id: int):
    return jsonify(_get_project(project_id).to_dict())


@bp.post("/")
@admin_required
def create_project():
    data = request.get_json(silent=True) or {}
    values = {key: text(data, key) for key in REQUIRED_FIELDS}
    if not all(values.values()):
        raise InvalidInput("Please fill all required fields: " + ", ".join(REQUIRED_FIELDS) + ".")
    images = _image_refs(data.get("images"), "images")
    if not images:
        raise InvalidInput("At least one image is required for the project.")

    project = Project(link=text(data, "link") or "#", images=images, **values)
    db.session.add(project)
    _commit_or_conflict()
    return jsonify({"message": "Project created successfully!", "project": project.to_dict()}), 201


@bp.put("/<int:project_id>")
@admin_required
def update_project(project_id: int):
    project = _get_project(project_id)
    data = request.get_json(silent=True) or {}

    for key in REQUIRED_FIELDS:
        if key in data:
            value = text(data, key)
            if not value:
                raise InvalidInput(f"{key} cannot be empty.")
            setattr(project, key, value)
    if "link" in data:
        project.link = text(data, "link") or "#"

    # images not listed in existing_image_public_ids are dropped
    if "existing_image_public_ids" in data or "new_images" in data:
        keep_ids = data.get("existing_image_public_ids")
        if keep_ids is None:
            kept = list(project.images or [])
        elif not isinstance(keep_ids, list):
            db.session.rollback()
            raise InvalidInput("Invalid format for existing image IDs.")
        else:
            kept = [img for img in (project.images or []) if img.get("public_id") in keep_ids]
        project.images = kept + _image_refs(data.get("new_images"), "new_images")

    _commit_or_conflict()
    return jsonify({"message": "Project updated successfully!", "project": project.to_dict()})


@bp.delete("/<int:project_id>")
@admin_required
def delete_project(project_id: int):
    db.session.delete(_get_project(project_id))
    db.session.commit()
    return jsonify({"message": "Project deleted successfully."})
