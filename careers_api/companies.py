from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.company import Company
from models.job import Job
from models.schemas.company import (
    CompanyCreateSchema,
    CompanyUpdateSchema,
    CompanyOutSchema,
    JobCreateSchema,
    JobOutSchema,
)
from utils.decorators import jwt_required, jwt_optional, roles_required, company_access_required
from utils.policies import can_manage_company, find_company_or_404

logger = logging.getLogger(__name__)

bp = Blueprint("companies", __name__)

company_create_schema = CompanyCreateSchema()
company_update_schema = CompanyUpdateSchema()
company_out_schema = CompanyOutSchema()
companies_out_schema = CompanyOutSchema(many=True)
job_create_schema = JobCreateSchema()
jobs_out_schema = JobOutSchema(many=True)
job_out_schema = JobOutSchema()


def _ensure_slug_free(slug: str, exclude_id: str | None = None) -> None:
    query = storage.get_session().query(Company).filter(Company.slug == slug)
    if exclude_id:
        query = query.filter(Company.id != exclude_id)
    if query.first():
        abort(409, description="Company with this slug already exists")


@bp.get("/companies")
def list_companies():
    """
    List companies
    ---
    tags:
      - Companies
    responses:
      200: { description: OK }
    """
    rows = storage.get_session().query(Company).order_by(Company.created_at.desc()).all()
    return jsonify({"companies": companies_out_schema.dump(rows)}), 200


@bp.get("/companies/<slug>")
def get_company(slug: str):
    """
    Get a company by slug
    ---
    tags:
      - Companies
    parameters:
      - { in: path, name: slug, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify({"company": company_out_schema.dump(find_company_or_404(slug))}), 200


@bp.post("/companies")
@jwt_required()
@roles_required(["admin"])
def create_company():
    """
    Create a company - admin
    ---
    tags:
      - Companies
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            slug: { type: string, pattern: "^[a-z0-9-]+$" }
            status: { type: string, enum: [active, draft, archived] }
    responses:
      201: { description: Created }
      409: { description: Slug already taken }
    """
    payload = request.get_json(silent=True) or {}
    data = company_create_schema.load(payload)
    _ensure_slug_free(data["slug"])

    company = Company(**data)
    storage.new(company)
    storage.save()
    return jsonify({"message": "Company created successfully", "company": company_out_schema.dump(company)}), 201


@bp.patch("/companies/<slug>")
@jwt_required()
@company_access_required()
def update_company(company: Company):
    """
    Update a company - admin or one of its recruiters
    ---
    tags:
      - Companies
    security:
      - Bearer: []
    parameters:
      - { in: path, name: slug, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            slug: { type: string }
            status: { type: string }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = company_update_schema.load(payload)
    if "slug" in data:
        _ensure_slug_free(data["slug"], exclude_id=company.id)
    for key, value in data.items():
        setattr(company, key, value)
    company.save()
    return jsonify({"message": "Company updated successfully", "company": company_out_schema.dump(company)}), 200


@bp.delete("/companies/<company_id>")
@jwt_required()
@roles_required(["admin"])
def delete_company(company_id: str):
    """
    Delete a company; its recruiters lose the company link - admin
    ---
    tags:
      - Companies
    security:
      - Bearer: []
    parameters:
      - { in: path, name: company_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      404: { description: Not found }
    """
    company = storage.get(Company, company_id)
    if not company:
        abort(404, description="Company not found")
    storage.delete(company)
    storage.save()
    logger.info("admin %s deleted company %s", g.principal.user_id, company_id)
    return jsonify({"message": "Company deleted successfully"}), 200


@bp.get("/companies/<slug>/jobs")
@jwt_optional()
def list_company_jobs(slug: str):
    """
    Jobs of a company. Admins and the company's recruiters see every job,
    everyone else (including anonymous visitors) only active ones.
    ---
    tags:
      - Jobs
    parameters:
      - { in: path, name: slug, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Company not found }
    """
    company = find_company_or_404(slug)
    query = storage.get_session().query(Job).filter(Job.company_id == company.id)
    if not can_manage_company(g.principal, company):
        query = query.filter(Job.status == "active")
    rows = query.order_by(Job.created_at.desc()).all()
    return jsonify({"jobs": jobs_out_schema.dump(rows)}), 200


@bp.post("/companies/<slug>/jobs")
@jwt_required()
@company_access_required()
def create_job(company: Company):
    """
    Post a job - admin or one of the company's recruiters
    ---
    tags:
      - Jobs
    security:
      - Bearer: []
    parameters:
      - { in: path, name: slug, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            title: { type: string }
            location: { type: string }
            description: { type: string }
            status: { type: string, enum: [active, draft, closed] }
    responses:
      201: { description: Created }
      403: { description: Forbidden }
    """
    payload = request.get_json(silent=True) or {}
    data = job_create_schema.load(payload)
    job = Job(company_id=company.id, **data)
    storage.new(job)
    storage.save()
    return jsonify({"job": job_out_schema.dump(job)}), 201
