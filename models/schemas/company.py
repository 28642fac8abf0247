from marshmallow import Schema, fields, validate, pre_load

from models.company import COMPANY_STATUSES
from models.job import JOB_STATUSES

SLUG_RE = r"^[a-z0-9-]+$"


def _strip_slug(data):
    if isinstance(data, dict) and isinstance(data.get("slug"), str):
        data = dict(data, slug=data["slug"].strip().lower())
    return data


class CompanyCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    slug = fields.String(
        required=True,
        validate=validate.Regexp(SLUG_RE, error="Slug must contain only lowercase letters, numbers, and hyphens"),
    )
    status = fields.String(load_default="draft", validate=validate.OneOf(COMPANY_STATUSES))

    @pre_load
    def normalize(self, data, **kwargs):
        return _strip_slug(data)


class CompanyUpdateSchema(Schema):
    name = fields.String(validate=validate.Length(min=1, max=255))
    slug = fields.String(validate=validate.Regexp(SLUG_RE))
    status = fields.String(validate=validate.OneOf(COMPANY_STATUSES))

    @pre_load
    def normalize(self, data, **kwargs):
        return _strip_slug(data)


class CompanyOutSchema(Schema):
    id = fields.String()
    name = fields.String()
    slug = fields.String()
    status = fields.String()
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class JobCreateSchema(Schema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=255))
    location = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    status = fields.String(load_default="draft", validate=validate.OneOf(JOB_STATUSES))


class JobOutSchema(Schema):
    id = fields.String()
    company_id = fields.String(data_key="companyId")
    title = fields.String()
    location = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    status = fields.String()
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
