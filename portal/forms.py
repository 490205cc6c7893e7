# portal/forms.py
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import TextAreaField, SubmitField
from wtforms.validators import DataRequired, Length, Optional as Opt


class NoteForm(FlaskForm):
    content = TextAreaField("Note", validators=[DataRequired(message="Write something first."), Length(max=5000)])
    submit = SubmitField("Send")


class UploadForm(FlaskForm):
    file = FileField("File", validators=[FileRequired(message="Choose a file to upload.")])
    submit = SubmitField("Upload File")


class VaultForm(FlaskForm):
    vault = TextAreaField("Credentials", validators=[Opt(), Length(max=20000)])
    submit = SubmitField("Save Credentials")
