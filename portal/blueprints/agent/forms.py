# portal/blueprints/agent/forms.py
from flask_wtf import FlaskForm
from wtforms import IntegerField, SubmitField
from wtforms.fields import DateField
from wtforms.validators import InputRequired, Optional as Opt


class ProjectUpdateForm(FlaskForm):
    # out-of-range values are clamped by the view rather than rejected
    progress = IntegerField("Progress (%)", validators=[InputRequired(message="Progress must be a number.")])
    ecd = DateField("Estimated completion", format="%Y-%m-%d", validators=[Opt()])
    submit = SubmitField("Save Status")
