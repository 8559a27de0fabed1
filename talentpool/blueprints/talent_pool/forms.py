from flask_wtf import FlaskForm
from wtforms import StringField, SelectField
from wtforms.validators import Length, Optional, URL

from ...models.batch import SOURCE_TYPES


class UploadBatchForm(FlaskForm):
    # files are read from request.files ("files" or "files[]")
    batch_name = StringField("Batch name", validators=[Optional(), Length(max=255)])
    source_type = SelectField("Source", choices=[(s, s) for s in SOURCE_TYPES], default="MANUAL_UPLOAD")
    source_url = StringField("Source URL", validators=[Optional(), URL(), Length(max=512)])
