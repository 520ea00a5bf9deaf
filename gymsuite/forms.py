"""
WTForms for the gym management API.

Forms are fed from JSON bodies. Only keys present in the body are written
back, so the same form serves create (full validation) and PATCH (present
fields only).
"""
from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import (
    StringField, BooleanField, SelectField, TextAreaField,
    IntegerField, DecimalField, DateField, DateTimeField
)
from wtforms.validators import DataRequired, InputRequired, Email, Optional, Length, NumberRange

from gymsuite.errors import ValidationError
from gymsuite.models.gym import STAFF_ROLES
from gymsuite.models.member import MEMBERSHIP_TYPES
from gymsuite.models.payment import PAYMENT_STATUSES
from gymsuite.models.session import SESSION_STATUSES

DATETIME_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M:%S.%f', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M:%S']


class JSONForm(FlaskForm):
    """Base form - JSON body, no CSRF (requests are header-authenticated)"""

    class Meta:
        csrf = False


class MemberForm(JSONForm):
    """Member form"""
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Email(), Length(max=100)])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    avatar_url = StringField('Avatar', validators=[Optional(), Length(max=255)])
    coach_id = IntegerField('Coach', validators=[Optional()])
    membership_type = SelectField('Membership', choices=[(t, t) for t in MEMBERSHIP_TYPES],
                                  default='basic', validators=[Optional()])
    membership_start = DateField('Membership start', validators=[Optional()])
    membership_end = DateField('Membership end', validators=[Optional()])
    monthly_fee = DecimalField('Monthly fee', places=2, validators=[Optional(), NumberRange(min=0)])
    notes = TextAreaField('Notes', validators=[Optional()])


class CoachForm(JSONForm):
    """Coach form"""
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Email(), Length(max=100)])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    avatar_url = StringField('Avatar', validators=[Optional(), Length(max=255)])
    profile_id = IntegerField('Profile', validators=[Optional()])
    bio = TextAreaField('Bio', validators=[Optional()])
    hourly_rate = DecimalField('Hourly rate', places=2, validators=[Optional(), NumberRange(min=0)])
    rating = DecimalField('Rating', places=2, validators=[Optional(), NumberRange(min=0, max=5)])
    is_active = BooleanField('Active', default=True)


class SessionForm(JSONForm):
    """Training session form"""
    coach_id = IntegerField('Coach', validators=[InputRequired()])
    member_id = IntegerField('Member', validators=[Optional()])
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    session_type = StringField('Type', validators=[Optional(), Length(max=30)])
    start_time = DateTimeField('Start', format=DATETIME_FORMATS, validators=[InputRequired()])
    end_time = DateTimeField('End', format=DATETIME_FORMATS, validators=[InputRequired()])
    status = SelectField('Status', choices=[(s, s) for s in SESSION_STATUSES],
                         default='scheduled', validators=[Optional()])
    price = DecimalField('Price', places=2, validators=[Optional(), NumberRange(min=0)])
    max_participants = IntegerField('Max participants', validators=[Optional(), NumberRange(min=1)])
    location = StringField('Location', validators=[Optional(), Length(max=200)])
    notes = TextAreaField('Notes', validators=[Optional()])


class SessionStatusForm(JSONForm):
    status = SelectField('Status', choices=[(s, s) for s in SESSION_STATUSES],
                         validators=[InputRequired()])


class AttendanceForm(JSONForm):
    attended = BooleanField('Attended')


class PaymentForm(JSONForm):
    """Payment form"""
    member_id = IntegerField('Member', validators=[InputRequired()])
    amount = DecimalField('Amount', places=2, validators=[InputRequired(), NumberRange(min=0)])
    description = TextAreaField('Description', validators=[Optional()])
    payment_type = StringField('Type', validators=[Optional(), Length(max=30)])
    status = SelectField('Status', choices=[(s, s) for s in PAYMENT_STATUSES],
                         default='pending', validators=[Optional()])
    due_date = DateField('Due date', validators=[InputRequired()])
    paid_date = DateTimeField('Paid date', format=DATETIME_FORMATS, validators=[Optional()])
    payment_method = StringField('Method', validators=[Optional(), Length(max=20)])
    invoice_number = StringField('Invoice', validators=[Optional(), Length(max=50)])


class MarkPaidForm(JSONForm):
    payment_method = StringField('Method', validators=[Optional(), Length(max=20)])


class MessageForm(JSONForm):
    """Direct message form"""
    recipient_id = IntegerField('Recipient', validators=[InputRequired()])
    subject = StringField('Subject', validators=[DataRequired(), Length(max=200)])
    content = TextAreaField('Content', validators=[DataRequired()])


class BroadcastForm(JSONForm):
    """Broadcast message form"""
    subject = StringField('Subject', validators=[DataRequired(), Length(max=200)])
    content = TextAreaField('Content', validators=[DataRequired()])


class AlertForm(JSONForm):
    """Alert form"""
    type = StringField('Type', validators=[DataRequired(), Length(max=50)])
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    message = TextAreaField('Message', validators=[DataRequired()])
    severity = SelectField('Severity', choices=[('info', 'info'), ('warning', 'warning'),
                                                ('critical', 'critical')],
                           default='info', validators=[Optional()])
    related_id = IntegerField('Related id', validators=[Optional()])
    related_type = StringField('Related type', validators=[Optional(), Length(max=50)])


class GymForm(JSONForm):
    """Gym profile form"""
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[Optional(), Email(), Length(max=100)])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    address = TextAreaField('Address', validators=[Optional()])
    logo_url = StringField('Logo', validators=[Optional(), Length(max=255)])
    timezone = StringField('Timezone', validators=[Optional(), Length(max=50)])
    currency = StringField('Currency', validators=[Optional(), Length(min=3, max=3)])


class StaffForm(JSONForm):
    """Staff profile form"""
    full_name = StringField('Name', validators=[Optional(), Length(max=100)])
    avatar_url = StringField('Avatar', validators=[Optional(), Length(max=255)])


class RoleForm(JSONForm):
    role = SelectField('Role', choices=[(r, r) for r in STAFF_ROLES], validators=[InputRequired()])


def request_payload():
    """JSON body as a dict"""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    return payload


def _formdata(payload):
    """JSON values as form data: null -> '', numbers -> str, bools kept"""
    items = []
    for key, value in payload.items():
        if isinstance(value, list):
            items.extend((key, v) for v in value)
        elif value is None:
            items.append((key, ''))
        elif isinstance(value, bool):
            items.append((key, value))
        elif isinstance(value, (int, float)):
            items.append((key, str(value)))
        else:
            items.append((key, value))
    return MultiDict(items)


def load_form(form_class, partial=False, payload=None):
    """
    Build and validate a form from the request body.

    Args:
        form_class: JSONForm subclass
        partial: validate only the fields present in the body
        payload: dict to use instead of the request body

    Returns:
        dict of field name -> cleaned value, for fields present in the body

    Raises:
        ValidationError: with the per-field errors
    """
    payload = request_payload() if payload is None else payload
    form = form_class(formdata=_formdata(payload))
    present = [field for field in form if field.name in payload]

    if partial:
        valid = all([field.validate(form) for field in present])
    else:
        valid = form.validate()

    if not valid:
        errors = {name: errs for name, errs in form.errors.items() if errs}
        raise ValidationError('Invalid input', details=errors)

    return {field.name: field.data for field in present}
