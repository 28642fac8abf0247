from marshmallow import (
    Schema,
    fields,
    pre_load,
    post_dump,
    validate,
    validates,
    validates_schema,
    ValidationError,
    EXCLUDE,
)

from models.user import USER_ROLES


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _validate_password(value):
    if len(value) < 8:
        raise ValidationError("Password must be at least 8 characters long.")


class UserCreateSchema(Schema):
    """Admin-side user creation: any role, recruiters must name a company."""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    username = fields.String(required=True, validate=validate.Length(min=3, max=64))
    password = fields.String(required=True, load_only=True)
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    role = fields.String(load_default="candidate", validate=validate.OneOf(USER_ROLES))
    company_id = fields.String(data_key="companyId", allow_none=True, load_default=None)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        _validate_password(value)

    @validates_schema
    def validate_company_for_role(self, data, **kwargs):
        # Cross-field rule; company existence is checked by create_user
        if data.get("role") == "recruiter" and not data.get("company_id"):
            raise ValidationError("Recruiters must belong to a company.", field_name="companyId")


class RegisterSchema(UserCreateSchema):
    """
    Public sign-up creates candidates only. Recruiters and admins are created
    by an admin, so nobody can attach themselves to a company; a posted
    companyId is dropped.
    """

    class Meta:
        unknown = EXCLUDE
        exclude = ("company_id",)

    role = fields.String(load_default="candidate", validate=validate.OneOf(("candidate",)))


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserUpdateSchema(Schema):
    # Password changes are not handled here
    email = fields.Email()
    username = fields.String(validate=validate.Length(min=3, max=64))
    name = fields.String(validate=validate.Length(min=1, max=255))
    role = fields.String(validate=validate.OneOf(USER_ROLES))
    company_id = fields.String(data_key="companyId", allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserOutSchema(Schema):
    """Safe user: never carries the password hash."""

    id = fields.String()
    email = fields.String()
    username = fields.String()
    name = fields.String()
    role = fields.String()
    company_id = fields.String(data_key="companyId", allow_none=True)
    company_slug = fields.String(data_key="companySlug", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")

    @post_dump
    def drop_missing_slug(self, data, **kwargs):
        if data.get("companySlug") is None:
            data.pop("companySlug", None)
        return data
