# portal/blueprints/client/forms.py
from flask_wtf import FlaskForm
from wtforms import SelectField, TextAreaField, SubmitField
from wtforms.validators import DataRequired, Length

from ...lifecycle.formatting import DEFAULT_PRIORITY, PRIORITIES


class ServiceRequestForm(FlaskForm):
    category = SelectField("Service", choices=[], validators=[DataRequired(message="Pick a service.")])
    priority = SelectField("Priority", choices=[(p, p) for p in PRIORITIES], default=DEFAULT_PRIORITY)
    details = TextAreaField(
        "Describe what you need",
        validators=[DataRequired(), Length(min=10, max=5000, message="Tell us a bit more (10+ characters).")],
    )
    submit = SubmitField("Submit Request")
