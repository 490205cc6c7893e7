# portal/blueprints/admin/forms.py
from flask_wtf import FlaskForm
from wtforms import BooleanField, IntegerField, PasswordField, SelectField, StringField, SubmitField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional as Opt

from ...services.settings_store import ASSIGNMENT_MODES


class AgentForm(FlaskForm):
    full_name = StringField("Full name", validators=[DataRequired(message="Please fill in all required fields"), Length(max=120)])
    email = StringField("Email", validators=[DataRequired(message="Please fill in all required fields"), Email(), Length(max=255)])
    phone = StringField("Phone", validators=[Opt(), Length(max=50)])
    password = PasswordField("Temporary password", validators=[DataRequired(message="Please fill in all required fields"), Length(min=6)])
    submit = SubmitField("Create Agent")


class SettingsForm(FlaskForm):
    auto_approval = BooleanField("Auto-approve new clients")
    email_notifications = BooleanField("Email notifications")
    agent_assignment = SelectField("Agent assignment", choices=list(ASSIGNMENT_MODES))
    maintenance_mode = BooleanField("Maintenance mode")
    max_projects_per_agent = IntegerField(
        "Max projects per agent", validators=[DataRequired(), NumberRange(min=1, max=100)]
    )
    session_timeout = IntegerField(
        "Session timeout (minutes)", validators=[DataRequired(), NumberRange(min=5, max=1440)]
    )
    submit = SubmitField("Save Settings")
